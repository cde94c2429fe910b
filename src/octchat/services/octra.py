"""Octra chain RPC client.

Message delivery does not go through the chain; the relay only keeps a
configured client around so operators can see which RPC endpoint it points at
and whether that endpoint answers.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

import httpx

from octchat.core.settings import settings

logger = logging.getLogger(__name__)

HTTP_OK = 200


class OctraError(RuntimeError):
    """Raised for failed Octra RPC requests."""


@dataclass(frozen=True)
class OctraConfig:
    """Immutable configuration for the Octra RPC client."""

    rpc_url: str
    timeout_seconds: float
    health_timeout_seconds: float


def load_octra_config() -> OctraConfig:
    """Build the client configuration from application settings."""
    return OctraConfig(
        rpc_url=settings.octra_rpc.rstrip("/"),
        timeout_seconds=settings.octra_http_timeout_seconds,
        health_timeout_seconds=settings.octra_health_timeout_seconds,
    )


class OctraClient:
    """HTTP client wrapper for the Octra RPC endpoint."""

    def __init__(
        self,
        config: OctraConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config or load_octra_config()
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        self._client_lock = asyncio.Lock()

    @property
    def rpc_url(self) -> str:
        return self.config.rpc_url

    async def _ensure_client(self) -> httpx.AsyncClient:
        async with self._client_lock:
            if self._client is None:
                self._client = httpx.AsyncClient(
                    base_url=self.config.rpc_url,
                    timeout=httpx.Timeout(self.config.timeout_seconds),
                    headers={"Content-Type": "application/json"},
                    transport=self._transport,
                )
        return self._client

    async def get(self, path: str, *, timeout: float | None = None) -> httpx.Response:
        """Issue a GET against the RPC endpoint.

        Raises:
            OctraError: If the request fails at the transport level
        """
        client = await self._ensure_client()
        try:
            if timeout is None:
                return await client.get(path)
            return await client.get(path, timeout=timeout)
        except httpx.HTTPError as exc:
            raise OctraError(f"Octra request failed: {exc}") from exc

    async def health_check(self) -> bool:
        """Return True if the RPC endpoint answers its health check with 200."""
        try:
            response = await self.get("/health", timeout=self.config.health_timeout_seconds)
        except OctraError as exc:
            logger.warning("Octra health check failed: %s", exc)
            return False
        return response.status_code == HTTP_OK

    async def close(self) -> None:
        """Clean up underlying HTTP client resources."""
        async with self._client_lock:
            if self._client is not None:
                await self._client.aclose()
                self._client = None


class _OctraClientSingleton:
    """Singleton wrapper for OctraClient."""

    _instance: OctraClient | None = None

    @classmethod
    def get_instance(cls) -> OctraClient:
        """Get or create the singleton OctraClient instance."""
        if cls._instance is None:
            cls._instance = OctraClient()
        return cls._instance


def get_octra_client() -> OctraClient:
    """Return a singleton Octra client instance."""
    return _OctraClientSingleton.get_instance()
