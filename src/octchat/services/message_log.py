"""Bounded in-memory log of accepted messages."""

from __future__ import annotations

from collections import deque
from collections.abc import Iterator

from octchat.schemas.message import RelayMessage

DEFAULT_CAPACITY = 100


class MessageLog:
    """Ordered FIFO log holding at most `capacity` accepted messages."""

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        if capacity < 1:
            raise ValueError("Message log capacity must be positive")
        self.capacity = capacity
        self._entries: deque[RelayMessage] = deque(maxlen=capacity)

    def append(self, message: RelayMessage) -> RelayMessage | None:
        """Append a message, returning the evicted oldest entry if the log was full."""
        evicted = self._entries[0] if len(self._entries) == self.capacity else None
        self._entries.append(message)
        return evicted

    def snapshot(self) -> list[RelayMessage]:
        """Return a copy of the log contents, oldest first."""
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[RelayMessage]:
        return iter(self.snapshot())
