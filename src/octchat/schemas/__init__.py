"""Pydantic schemas for Octchat wire payloads."""

from .message import ErrorPayload, EventFrame, OutgoingMessage, RelayMessage

__all__ = [
    "ErrorPayload",
    "EventFrame",
    "OutgoingMessage",
    "RelayMessage",
]
