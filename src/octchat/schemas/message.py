"""Relay wire schemas."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class OutgoingMessage(BaseModel):
    """Signed message as emitted by a client with ``sendMessage``."""

    sender: str = Field(..., alias="from", min_length=1, description="Sender identifier")
    public_key: str = Field(
        ...,
        alias="publicKey",
        min_length=1,
        description="Base64-encoded raw Ed25519 public key",
    )
    content: str = Field(..., min_length=1, description="Message text that was signed")
    signature: str = Field(
        ...,
        min_length=1,
        description="Base64-encoded detached Ed25519 signature over the content",
    )
    timestamp: int | float | str | None = Field(
        None, description="Client send time, normally epoch milliseconds; relayed as given"
    )

    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    @field_validator("timestamp", mode="before")
    @classmethod
    def _drop_non_scalar_timestamp(cls, value: Any) -> Any:
        # The relay stamps its own receipt time when this ends up None.
        if isinstance(value, (list, dict)):
            return None
        return value

    def to_wire(self) -> dict[str, Any]:
        """Return the payload using wire field names."""
        return self.model_dump(by_alias=True)


class RelayMessage(OutgoingMessage):
    """Message accepted by the relay after signature verification."""

    id: str = Field(..., description="Relay-assigned unique id")
    verified: bool = Field(True, description="Set once the signature check passed")


class EventFrame(BaseModel):
    """One named event on the relay WebSocket."""

    event: str = Field(..., min_length=1)
    data: Any = None


class ErrorPayload(BaseModel):
    """Body of an ``error`` event sent to a single session."""

    message: str
