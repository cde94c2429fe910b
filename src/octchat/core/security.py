"""Signature verification built on Ed25519 primitives."""
from __future__ import annotations

import base64
import binascii

from nacl.exceptions import BadSignatureError, CryptoError
from nacl.signing import VerifyKey

_BYTES_TYPES = (bytes, bytearray, memoryview)


def verify_signature(message: str, signature: bytes, public_key: bytes) -> bool:
    """Verify a detached Ed25519 signature over a text message.

    Args:
        message: Message text; verified over its UTF-8 bytes with no framing.
        signature: Raw 64-byte detached signature.
        public_key: Raw 32-byte Ed25519 public key.

    Returns:
        True if the signature is valid for `message` under `public_key`; False otherwise.
    """
    if not isinstance(signature, _BYTES_TYPES) or not isinstance(public_key, _BYTES_TYPES):
        return False
    try:
        verify_key = VerifyKey(bytes(public_key))
        verify_key.verify(message.encode("utf-8"), bytes(signature))
        return True
    except (BadSignatureError, CryptoError, ValueError, TypeError, AttributeError):
        return False


def verify_encoded_signature(message: str, signature_b64: str, public_key_b64: str) -> bool:
    """Verify a signature whose key and signature arrive base64-encoded.

    Decoding failures count as a failed verification.
    """
    try:
        signature = base64.b64decode(signature_b64, validate=True)
        public_key = base64.b64decode(public_key_b64, validate=True)
    except (binascii.Error, ValueError, TypeError):
        return False
    return verify_signature(message, signature, public_key)
