# src/octchat/api/v1/endpoints/messages.py
"""Read-only message log endpoint."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter

from octchat.api.v1.dependencies import RelayDep

router = APIRouter(prefix="/messages", tags=["messages"])


@router.get("")
async def list_messages(relay: RelayDep) -> dict[str, list[dict[str, Any]]]:
    """Return the accepted messages currently held by the relay, oldest first."""
    return {"messages": relay.messages()}
