# src/octchat/api/v1/endpoints/relay.py
"""WebSocket transport for the relay event channel.

Each text frame is a JSON object ``{"event": <name>, "data": <payload>}`` in
both directions.
"""

from __future__ import annotations

import json
import logging
import uuid
from typing import Any

from fastapi import APIRouter, WebSocket
from pydantic import ValidationError

from octchat.api.v1.dependencies import RelayDep
from octchat.schemas.message import EventFrame
from octchat.services.relay import ERROR

logger = logging.getLogger(__name__)

router = APIRouter(tags=["relay"])

MALFORMED_FRAME_REASON = "Malformed frame: expected a JSON object with an event name"


class WebSocketSession:
    """Relay session backed by one accepted WebSocket."""

    def __init__(self, websocket: WebSocket) -> None:
        self.websocket = websocket
        self.session_id = uuid.uuid4().hex

    async def send(self, event: str, data: Any) -> None:
        await self.websocket.send_json({"event": event, "data": data})


def parse_frame(text: str) -> EventFrame | None:
    """Decode one inbound text frame, returning None if it is malformed."""
    try:
        return EventFrame.model_validate(json.loads(text))
    except (ValueError, ValidationError):
        return None


@router.websocket("/ws")
async def relay_socket(websocket: WebSocket, relay: RelayDep) -> None:
    """Serve one client connection until it closes."""
    await websocket.accept()
    session = WebSocketSession(websocket)
    await relay.connect(session)
    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break

            text = message.get("text")
            frame = parse_frame(text) if text is not None else None
            if frame is None:
                logger.warning("Malformed frame from session %s", session.session_id)
                await session.send(ERROR, {"message": MALFORMED_FRAME_REASON})
                continue

            await relay.dispatch(session, frame.event, frame.data)
    finally:
        await relay.disconnect(session)
