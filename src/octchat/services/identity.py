"""Client-side identity generation and local storage.

An identity is an Ed25519 keypair plus the identifier derived from its public
key. It is created once, stored under a fixed record name and never mutated;
generating a new identity replaces the stored record.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path

from octchat.core.settings import settings
from octchat.services.crypto import CryptoService

logger = logging.getLogger(__name__)

IDENTITY_RECORD_NAME = "octchat_identity"


class CorruptIdentityError(RuntimeError):
    """Raised when a stored identity record exists but cannot be read back."""


@dataclass(frozen=True)
class Identity:
    """Participant identity owned by one client."""

    identifier: str
    public_key: bytes
    private_key: bytes = field(repr=False)
    created_at: datetime

    def to_record(self) -> dict[str, str]:
        """Serialize into the persisted record layout."""
        return {
            "octID": self.identifier,
            "publicKey": CryptoService.encode_base64(self.public_key),
            "privateKey": CryptoService.encode_base64(self.private_key),
            "createdAt": self.created_at.isoformat(),
        }

    @classmethod
    def from_record(cls, record: dict[str, str]) -> Identity:
        """Rebuild an identity from its persisted record layout."""
        return cls(
            identifier=record["octID"],
            public_key=CryptoService.decode_base64(record["publicKey"]),
            private_key=CryptoService.decode_base64(record["privateKey"]),
            created_at=datetime.fromisoformat(record["createdAt"]),
        )


class IdentityStore:
    """Directory-backed store of named text records."""

    def __init__(self, directory: Path | str | None = None) -> None:
        self.directory = Path(directory) if directory is not None else settings.identity_dir

    def _path(self, name: str) -> Path:
        return self.directory / f"{name}.json"

    def read(self, name: str) -> str | None:
        """Return the stored text for `name`, or None when nothing is stored."""
        path = self._path(name)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def write(self, name: str, value: str) -> None:
        """Store `value` under `name`, replacing any previous record."""
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self._path(name)
        tmp_path = path.with_suffix(".tmp")
        tmp_path.write_text(value, encoding="utf-8")
        tmp_path.chmod(0o600)
        tmp_path.replace(path)

    def delete(self, name: str) -> None:
        """Remove the record for `name` if present."""
        self._path(name).unlink(missing_ok=True)


class IdentityManager:
    """Creates, persists and loads the local participant identity."""

    def __init__(self, store: IdentityStore | None = None) -> None:
        self.store = store or IdentityStore()

    def generate_identity(self) -> Identity:
        """Generate a fresh identity and persist it, overwriting any prior one.

        Raises:
            KeyGenerationError: If the keypair cannot be generated
        """
        private_key, public_key = CryptoService.generate_key_pair()
        identity = Identity(
            identifier=CryptoService.derive_identifier(public_key),
            public_key=public_key,
            private_key=private_key,
            created_at=datetime.now(timezone.utc),
        )
        self.store.write(IDENTITY_RECORD_NAME, json.dumps(identity.to_record()))
        logger.info("Generated identity %s", identity.identifier)
        return identity

    def load_identity(self) -> Identity | None:
        """Load the stored identity.

        Returns:
            The stored identity, or None when no identity has been generated

        Raises:
            CorruptIdentityError: If a record exists but cannot be deserialized
        """
        try:
            raw = self.store.read(IDENTITY_RECORD_NAME)
            if raw is None:
                return None
            record = json.loads(raw)
            if not isinstance(record, dict):
                raise TypeError("identity record must be a JSON object")
            return Identity.from_record(record)
        except (ValueError, KeyError, TypeError) as err:
            logger.error("Stored identity record is unreadable: %s", err)
            raise CorruptIdentityError(f"Stored identity is corrupt: {err}") from err
