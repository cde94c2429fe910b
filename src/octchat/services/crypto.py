# src/octchat/services/crypto.py
"""Cryptographic services for Octchat identities."""

from __future__ import annotations

import base64
import binascii
import hashlib

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey

IDENTIFIER_PREFIX = "oct"
IDENTIFIER_HASH_CHARS = 42
PRIVATE_KEY_SEED_BYTES = 32
PUBKEY_LENGTH_BYTES = 32


class CryptoError(RuntimeError):
    """Base exception raised for key handling failures."""


class KeyGenerationError(CryptoError):
    """Raised when a fresh keypair cannot be produced.

    Covers a missing Ed25519 backend as well as any failure inside the
    provider while generating or exporting the key material.
    """


class SigningError(CryptoError):
    """Raised when a message cannot be signed with the supplied key."""


class CryptoService:
    """Service handling key generation, identifiers and key encodings."""

    @staticmethod
    def encode_base64(data: bytes) -> str:
        """Encode bytes with the standard, padded base64 alphabet."""
        return base64.b64encode(data).decode("ascii")

    @staticmethod
    def decode_base64(data: str) -> bytes:
        """Decode a standard base64 string, rejecting foreign characters."""
        try:
            return base64.b64decode(data, validate=True)
        except (binascii.Error, ValueError, TypeError) as err:
            raise ValueError(f"Invalid base64 encoding: {err}") from err

    @staticmethod
    def derive_identifier(public_key: bytes) -> str:
        """Derive the public identifier for a raw Ed25519 public key.

        Args:
            public_key: Raw 32-byte public key

        Returns:
            ``"oct"`` followed by the first 42 characters of the base64
            encoded SHA-256 digest of the key
        """
        digest = hashlib.sha256(public_key).digest()
        return IDENTIFIER_PREFIX + CryptoService.encode_base64(digest)[:IDENTIFIER_HASH_CHARS]

    @staticmethod
    def generate_key_pair() -> tuple[bytes, bytes]:
        """Generate a new Ed25519 key pair.

        Returns:
            Tuple of (private_key_pkcs8_der, public_key_raw)

        Raises:
            KeyGenerationError: If the provider is unavailable or generation fails
        """
        try:
            private_key = Ed25519PrivateKey.generate()
            private_der = private_key.private_bytes(
                encoding=serialization.Encoding.DER,
                format=serialization.PrivateFormat.PKCS8,
                encryption_algorithm=serialization.NoEncryption(),
            )
            public_raw = private_key.public_key().public_bytes(
                encoding=serialization.Encoding.Raw,
                format=serialization.PublicFormat.Raw,
            )
        except UnsupportedAlgorithm as err:
            raise KeyGenerationError(f"Ed25519 is not supported by the backend: {err}") from err
        except (ValueError, TypeError) as err:
            raise KeyGenerationError(f"Key generation failed: {err}") from err
        return private_der, public_raw

    @staticmethod
    def load_private_key(private_key: bytes) -> Ed25519PrivateKey:
        """Load an Ed25519 private key from a raw seed or PKCS#8 DER bytes.

        Raises:
            SigningError: If the bytes do not hold an Ed25519 private key
        """
        if not isinstance(private_key, (bytes, bytearray)):
            raise SigningError("Private key must be bytes")
        try:
            if len(private_key) == PRIVATE_KEY_SEED_BYTES:
                return Ed25519PrivateKey.from_private_bytes(bytes(private_key))
            loaded = serialization.load_der_private_key(bytes(private_key), password=None)
        except (ValueError, TypeError, UnsupportedAlgorithm) as err:
            raise SigningError(f"Invalid private key: {err}") from err
        if not isinstance(loaded, Ed25519PrivateKey):
            raise SigningError("Private key is not an Ed25519 key")
        return loaded

    @staticmethod
    def public_key_of(private_key: bytes) -> bytes:
        """Return the raw public key matching a private key."""
        return CryptoService.load_private_key(private_key).public_key().public_bytes(
            encoding=serialization.Encoding.Raw,
            format=serialization.PublicFormat.Raw,
        )
