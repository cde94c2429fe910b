"""Health endpoints for the Octchat relay."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter

from octchat.api.v1.dependencies import OctraClientDep, RelayDep

router = APIRouter(tags=["system"])


@router.get("/health")
async def health_check(relay: RelayDep, octra: OctraClientDep) -> dict[str, Any]:
    """Report relay liveness with registry and log sizes."""
    return {
        "status": "ok",
        "connectedUsers": relay.connected_users,
        "totalMessages": relay.total_messages,
        "octraRPC": octra.rpc_url,
    }


@router.get("/health/octra")
async def octra_health(octra: OctraClientDep) -> dict[str, Any]:
    """Check whether the configured Octra RPC endpoint is reachable."""
    return {
        "octraRPC": octra.rpc_url,
        "reachable": await octra.health_check(),
    }
