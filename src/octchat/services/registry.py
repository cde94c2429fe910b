"""Identifier to session bookkeeping for the relay."""

from __future__ import annotations

from typing import Generic, TypeVar

SessionT = TypeVar("SessionT")


class ConnectionRegistry(Generic[SessionT]):
    """Maps each registered identifier to its most recent session handle.

    Re-registering an identifier replaces the previous handle without notice.
    """

    def __init__(self) -> None:
        self._sessions: dict[str, SessionT] = {}

    def upsert(self, identifier: str, session: SessionT) -> SessionT | None:
        """Map `identifier` to `session`, returning the handle it replaced."""
        previous = self._sessions.get(identifier)
        self._sessions[identifier] = session
        return previous

    def remove_session(self, session: SessionT) -> list[str]:
        """Drop every entry whose handle is `session`; return the removed identifiers."""
        removed = [identifier for identifier, handle in self._sessions.items() if handle is session]
        for identifier in removed:
            del self._sessions[identifier]
        return removed

    def get(self, identifier: str) -> SessionT | None:
        return self._sessions.get(identifier)

    def identifiers(self) -> list[str]:
        return list(self._sessions)

    def __contains__(self, identifier: object) -> bool:
        return identifier in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)
