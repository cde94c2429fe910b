# tests/conftest.py
from __future__ import annotations

import asyncio
from collections.abc import Callable, Iterator
from itertools import count
from pathlib import Path
from typing import Any

import httpx
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from octchat.api.v1.dependencies import get_octra_client_dep, get_relay_dep
from octchat.main import app as fastapi_app
from octchat.services.identity import Identity, IdentityManager, IdentityStore
from octchat.services.octra import OctraClient, OctraConfig
from octchat.services.relay import Relay

TEST_RPC_URL = "https://rpc.octra.test"

_SESSION_COUNTER = count(1)


class FakeSession:
    """In-memory relay session that records every event it is sent."""

    def __init__(self, session_id: str) -> None:
        self.session_id = session_id
        self.sent: list[tuple[str, Any]] = []

    async def send(self, event: str, data: Any) -> None:
        self.sent.append((event, data))

    def events(self, name: str) -> list[Any]:
        return [data for event, data in self.sent if event == name]


class ClosedSession(FakeSession):
    """Session whose transport has already gone away."""

    async def send(self, event: str, data: Any) -> None:
        raise ConnectionError("socket closed")


class StalledSession(FakeSession):
    """Session whose client has stopped reading; sends never complete."""

    async def send(self, event: str, data: Any) -> None:
        await asyncio.Event().wait()


@pytest.fixture()
def make_session() -> Callable[..., FakeSession]:
    """Return a factory for recording sessions."""

    def _make(closed: bool = False, stalled: bool = False) -> FakeSession:
        session_id = f"session-{next(_SESSION_COUNTER)}"
        if stalled:
            return StalledSession(session_id)
        return ClosedSession(session_id) if closed else FakeSession(session_id)

    return _make


@pytest.fixture()
def relay() -> Relay:
    """Provide a fresh relay with the default log capacity."""
    return Relay(capacity=100)


@pytest.fixture()
def identity_dir(tmp_path: Path) -> Path:
    return tmp_path / "identity"


@pytest.fixture()
def identity_manager(identity_dir: Path) -> IdentityManager:
    return IdentityManager(IdentityStore(identity_dir))


@pytest.fixture()
def alice(identity_manager: IdentityManager) -> Identity:
    """Return a freshly generated, persisted identity."""
    return identity_manager.generate_identity()


@pytest.fixture()
def bob(tmp_path: Path) -> Identity:
    """Return a second identity stored in its own directory."""
    return IdentityManager(IdentityStore(tmp_path / "bob")).generate_identity()


@pytest.fixture()
def octra_responses() -> list[httpx.Response | Exception]:
    """Queue of responses the mocked Octra RPC will return, in order."""
    return []


@pytest.fixture()
def octra_client(octra_responses: list[httpx.Response | Exception]) -> OctraClient:
    def _handler(request: httpx.Request) -> httpx.Response:
        if not octra_responses:
            return httpx.Response(200, json={"status": "ok"})
        outcome = octra_responses.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    config = OctraConfig(rpc_url=TEST_RPC_URL, timeout_seconds=1.0, health_timeout_seconds=1.0)
    return OctraClient(config, transport=httpx.MockTransport(_handler))


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture(autouse=True)
def override_dependencies(app: FastAPI, relay: Relay, octra_client: OctraClient) -> Iterator[None]:
    app.dependency_overrides[get_relay_dep] = lambda: relay
    app.dependency_overrides[get_octra_client_dep] = lambda: octra_client
    try:
        yield
    finally:
        app.dependency_overrides.pop(get_relay_dep, None)
        app.dependency_overrides.pop(get_octra_client_dep, None)


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client
