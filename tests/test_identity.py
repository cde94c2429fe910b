# tests/test_identity.py
"""Tests for identity generation and local storage."""

from __future__ import annotations

import base64
import hashlib
import json
from pathlib import Path

import pytest
from cryptography.exceptions import UnsupportedAlgorithm

from octchat.services.crypto import CryptoService, KeyGenerationError
from octchat.services.identity import (
    IDENTITY_RECORD_NAME,
    CorruptIdentityError,
    Identity,
    IdentityManager,
    IdentityStore,
)

IDENTIFIER_LENGTH = 45
ED25519_PUBKEY_BYTES = 32


def _expected_identifier(public_key: bytes) -> str:
    return "oct" + base64.b64encode(hashlib.sha256(public_key).digest()).decode()[:42]


def test_generated_identifier_is_derived_from_public_key(alice: Identity) -> None:
    assert len(alice.public_key) == ED25519_PUBKEY_BYTES
    assert alice.identifier == _expected_identifier(alice.public_key)
    assert len(alice.identifier) == IDENTIFIER_LENGTH
    assert alice.identifier.startswith("oct")


def test_identifier_derivation_is_deterministic() -> None:
    public_key = bytes(range(32))
    assert CryptoService.derive_identifier(public_key) == CryptoService.derive_identifier(public_key)
    assert CryptoService.derive_identifier(public_key) == _expected_identifier(public_key)
    assert CryptoService.derive_identifier(public_key) != CryptoService.derive_identifier(bytes(32))


def test_repeated_generation_yields_distinct_identifiers(identity_manager: IdentityManager) -> None:
    identifiers = {identity_manager.generate_identity().identifier for _ in range(20)}
    assert len(identifiers) == 20


def test_public_key_matches_private_key(alice: Identity) -> None:
    assert CryptoService.public_key_of(alice.private_key) == alice.public_key


def test_generate_persists_record(alice: Identity, identity_dir: Path) -> None:
    record = json.loads((identity_dir / f"{IDENTITY_RECORD_NAME}.json").read_text())

    assert record["octID"] == alice.identifier
    assert base64.b64decode(record["publicKey"]) == alice.public_key
    assert base64.b64decode(record["privateKey"]) == alice.private_key
    assert record["createdAt"] == alice.created_at.isoformat()


def test_load_returns_none_when_nothing_stored(identity_manager: IdentityManager) -> None:
    assert identity_manager.load_identity() is None


def test_load_round_trips_generated_identity(
    identity_manager: IdentityManager, alice: Identity
) -> None:
    assert identity_manager.load_identity() == alice


def test_generate_overwrites_previous_identity(identity_manager: IdentityManager) -> None:
    first = identity_manager.generate_identity()
    second = identity_manager.generate_identity()

    loaded = identity_manager.load_identity()
    assert loaded == second
    assert loaded != first


@pytest.mark.parametrize(
    "raw",
    [
        "{not json",
        "[]",
        json.dumps({"octID": "octabc"}),
        json.dumps(
            {
                "octID": "octabc",
                "publicKey": "***",
                "privateKey": "AAAA",
                "createdAt": "2024-01-01T00:00:00+00:00",
            }
        ),
        json.dumps(
            {
                "octID": "octabc",
                "publicKey": "AAAA",
                "privateKey": "AAAA",
                "createdAt": "yesterday",
            }
        ),
    ],
)
def test_corrupt_record_is_surfaced(identity_dir: Path, raw: str) -> None:
    store = IdentityStore(identity_dir)
    store.write(IDENTITY_RECORD_NAME, raw)

    with pytest.raises(CorruptIdentityError):
        IdentityManager(store).load_identity()


def test_record_with_invalid_utf8_is_surfaced(identity_dir: Path) -> None:
    identity_dir.mkdir(parents=True)
    (identity_dir / f"{IDENTITY_RECORD_NAME}.json").write_bytes(b"\xff\xfe{garbage")

    with pytest.raises(CorruptIdentityError):
        IdentityManager(IdentityStore(identity_dir)).load_identity()


def test_key_generation_failure_raises_and_stores_nothing(
    identity_manager: IdentityManager, mocker
) -> None:
    mocked_key = mocker.patch("octchat.services.crypto.Ed25519PrivateKey")
    mocked_key.generate.side_effect = UnsupportedAlgorithm("ed25519 unavailable")

    with pytest.raises(KeyGenerationError):
        identity_manager.generate_identity()

    assert identity_manager.load_identity() is None


def test_private_key_is_not_in_repr(alice: Identity) -> None:
    assert "private_key" not in repr(alice)
    assert alice.identifier in repr(alice)


def test_store_delete_removes_record(identity_dir: Path, alice: Identity) -> None:
    store = IdentityStore(identity_dir)
    store.delete(IDENTITY_RECORD_NAME)
    store.delete(IDENTITY_RECORD_NAME)

    assert store.read(IDENTITY_RECORD_NAME) is None
    assert IdentityManager(store).load_identity() is None
