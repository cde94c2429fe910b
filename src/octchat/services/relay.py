"""Signature-gated message relay.

The relay owns the bounded message log and the identifier registry. Every
incoming event is routed through a dispatch table keyed by event name. Each
handler is a synchronous function of ``(session, payload)`` that mutates relay
state and returns the events to send; the async ``dispatch`` wrapper runs it
under the relay lock and delivers the result before releasing the lock, so the
log order and the broadcast order cannot diverge. Each send is bounded by the
delivery timeout; a session that misses it is evicted.

Signature verification for ``sendMessage`` runs in a worker thread before the
lock is taken. Messages are therefore committed in the order their
verification finished.
"""

from __future__ import annotations

import asyncio
import logging
import secrets
import string
import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol

from pydantic import ValidationError

from octchat.core.security import verify_encoded_signature
from octchat.core.settings import settings
from octchat.schemas.message import ErrorPayload, OutgoingMessage, RelayMessage
from octchat.services.message_log import MessageLog
from octchat.services.registry import ConnectionRegistry

logger = logging.getLogger(__name__)

# Client -> relay events
REGISTER = "register"
SEND_MESSAGE = "sendMessage"

# Relay -> client events
MESSAGE_HISTORY = "messageHistory"
MESSAGE = "message"
ERROR = "error"

INVALID_SIGNATURE_REASON = "Invalid signature - message rejected"
INVALID_IDENTIFIER_REASON = "Invalid identifier - registration rejected"
PROCESSING_FAILED_REASON = "Failed to process message"

_ID_SUFFIX_ALPHABET = string.ascii_lowercase + string.digits
_ID_SUFFIX_LENGTH = 9


class Session(Protocol):
    """Transport-side handle for one connected client."""

    session_id: str

    async def send(self, event: str, data: Any) -> None: ...


class SessionState(Enum):
    """Lifecycle of a session as seen by the relay."""

    DISCONNECTED = "disconnected"
    CONNECTED = "connected"
    REGISTERED = "registered"


@dataclass(frozen=True)
class Outbound:
    """One event to deliver to a fixed set of sessions."""

    targets: tuple[Session, ...]
    event: str
    data: Any

    @classmethod
    def error(cls, session: Session, reason: str) -> Outbound:
        return cls((session,), ERROR, ErrorPayload(message=reason).model_dump())


@dataclass(frozen=True)
class Screening:
    """Outcome of structural validation and signature verification."""

    message: OutgoingMessage | None = None
    reason: str | None = None

    @property
    def accepted(self) -> bool:
        return self.message is not None and self.reason is None


def _describe_validation_error(err: ValidationError) -> str:
    fields = sorted({str(error["loc"][0]) for error in err.errors() if error["loc"]})
    if not fields:
        return "Malformed message: expected an object"
    return "Malformed message: missing or invalid " + ", ".join(fields)


def screen_message(payload: Any) -> Screening:
    """Run the admission checks for a ``sendMessage`` payload.

    This is the only path by which a message can be accepted; it touches no
    relay state and is safe to run off the event loop.
    """
    try:
        message = OutgoingMessage.model_validate(payload)
    except ValidationError as err:
        return Screening(reason=_describe_validation_error(err))

    if not verify_encoded_signature(message.content, message.signature, message.public_key):
        return Screening(reason=INVALID_SIGNATURE_REASON)
    return Screening(message=message)


def new_message_id() -> str:
    """Return a relay message id: epoch milliseconds plus a random suffix."""
    suffix = "".join(secrets.choice(_ID_SUFFIX_ALPHABET) for _ in range(_ID_SUFFIX_LENGTH))
    return f"{int(time.time() * 1000)}{suffix}"


Handler = Callable[[Session, Any], list[Outbound]]


class Relay:
    """Owns relay state and serializes every mutation of it."""

    def __init__(
        self,
        capacity: int | None = None,
        delivery_timeout: float | None = None,
    ) -> None:
        self.log = MessageLog(capacity if capacity is not None else settings.message_log_capacity)
        self.delivery_timeout = (
            delivery_timeout
            if delivery_timeout is not None
            else settings.relay_delivery_timeout_seconds
        )
        self.registry: ConnectionRegistry[Session] = ConnectionRegistry()
        self._sessions: dict[str, Session] = {}
        self._states: dict[str, SessionState] = {}
        self._lock = asyncio.Lock()
        self._handlers: dict[str, Handler] = {
            REGISTER: self.handle_register,
            SEND_MESSAGE: self.handle_send_message,
        }
        self._screeners: dict[str, Callable[[Any], Any]] = {
            SEND_MESSAGE: screen_message,
        }

    # --- state accessors ------------------------------------------------------------
    @property
    def connected_users(self) -> int:
        """Number of registered identifiers."""
        return len(self.registry)

    @property
    def total_messages(self) -> int:
        return len(self.log)

    def messages(self) -> list[dict[str, Any]]:
        """Return the log contents in wire form, oldest first."""
        return [message.to_wire() for message in self.log.snapshot()]

    def state_of(self, session: Session) -> SessionState:
        return self._states.get(session.session_id, SessionState.DISCONNECTED)

    # --- transport lifecycle --------------------------------------------------------
    async def connect(self, session: Session) -> None:
        """Admit a freshly connected session to the fan-out set."""
        async with self._lock:
            self._sessions[session.session_id] = session
            self._states[session.session_id] = SessionState.CONNECTED
        logger.info("Session connected: %s", session.session_id)

    async def disconnect(self, session: Session) -> None:
        """Forget a session and any identifier still mapped to it."""
        async with self._lock:
            self._sessions.pop(session.session_id, None)
            self._states.pop(session.session_id, None)
            identifiers = self.registry.remove_session(session)
        if identifiers:
            logger.info("User disconnected: %s", ", ".join(identifiers))
        else:
            logger.info("Session disconnected: %s", session.session_id)

    async def dispatch(self, session: Session, event: str, payload: Any) -> None:
        """Handle one client event and deliver whatever it produces.

        Failures are confined to this event: the sender gets an ``error``
        event and the session stays usable.
        """
        handler = self._handlers.get(event)
        if handler is None:
            logger.warning("Unknown event %r from session %s", event, session.session_id)
            async with self._lock:
                await self._deliver([Outbound.error(session, f"Unknown event: {event}")])
            return

        try:
            screener = self._screeners.get(event)
            if screener is not None:
                payload = await asyncio.to_thread(screener, payload)
            async with self._lock:
                outbound = handler(session, payload)
                await self._deliver(outbound)
        except Exception:
            logger.exception("Error processing %s from session %s", event, session.session_id)
            async with self._lock:
                await self._deliver([Outbound.error(session, PROCESSING_FAILED_REASON)])

    # --- handlers -------------------------------------------------------------------
    def handle_register(self, session: Session, identifier: Any) -> list[Outbound]:
        """Map `identifier` to `session` and answer with a log snapshot.

        Registration carries no proof of key ownership.
        """
        if not isinstance(identifier, str) or not identifier:
            return [Outbound.error(session, INVALID_IDENTIFIER_REASON)]

        previous = self.registry.upsert(identifier, session)
        if previous is not None and previous is not session:
            logger.info(
                "Identifier %s moved from session %s to %s",
                identifier,
                previous.session_id,
                session.session_id,
            )
        self._states[session.session_id] = SessionState.REGISTERED
        logger.info("Registered identifier: %s", identifier)
        return [Outbound((session,), MESSAGE_HISTORY, self.messages())]

    def handle_send_message(self, session: Session, screening: Screening) -> list[Outbound]:
        """Commit a screened message to the log and fan it out, or reject it."""
        if not screening.accepted or screening.message is None:
            reason = screening.reason or PROCESSING_FAILED_REASON
            logger.warning("Rejected message from session %s: %s", session.session_id, reason)
            return [Outbound.error(session, reason)]

        incoming = screening.message
        timestamp = incoming.timestamp
        if timestamp is None:
            timestamp = int(time.time() * 1000)
        accepted = RelayMessage(
            sender=incoming.sender,
            public_key=incoming.public_key,
            content=incoming.content,
            signature=incoming.signature,
            timestamp=timestamp,
            id=new_message_id(),
            verified=True,
        )
        evicted = self.log.append(accepted)
        if evicted is not None:
            logger.debug("Evicted message %s from log", evicted.id)
        logger.info("Accepted message %s from %s", accepted.id, accepted.sender)
        return [Outbound(tuple(self._sessions.values()), MESSAGE, accepted.to_wire())]

    # --- delivery -------------------------------------------------------------------
    async def _deliver(self, outbound: list[Outbound]) -> None:
        """Send each event to its targets; caller holds the relay lock.

        A send that does not finish within ``delivery_timeout`` evicts its
        session, so one client that stops reading cannot stall the relay.
        """
        stalled: set[str] = set()
        for item in outbound:
            for target in item.targets:
                if target.session_id in stalled:
                    continue
                try:
                    await asyncio.wait_for(
                        target.send(item.event, item.data), timeout=self.delivery_timeout
                    )
                except asyncio.TimeoutError:
                    stalled.add(target.session_id)
                    self._evict(target)
                except Exception as exc:
                    logger.warning(
                        "Failed to deliver %s to session %s: %s",
                        item.event,
                        target.session_id,
                        exc,
                    )

    def _evict(self, session: Session) -> None:
        self._sessions.pop(session.session_id, None)
        self._states.pop(session.session_id, None)
        identifiers = self.registry.remove_session(session)
        logger.warning(
            "Evicted session %s (%s): delivery exceeded %.1fs",
            session.session_id,
            ", ".join(identifiers) or "unregistered",
            self.delivery_timeout,
        )


class _RelaySingleton:
    """Singleton wrapper for Relay."""

    _instance: Relay | None = None

    @classmethod
    def get_instance(cls) -> Relay:
        """Get or create the singleton Relay instance."""
        if cls._instance is None:
            cls._instance = Relay()
        return cls._instance


def get_relay() -> Relay:
    """Return the process-wide relay instance."""
    return _RelaySingleton.get_instance()
