"""High-level signing workflows used by the client side."""
from __future__ import annotations

import time
from typing import TYPE_CHECKING, Any

from octchat.services.crypto import CryptoService, SigningError

if TYPE_CHECKING:  # pragma: no cover - typing helper
    from octchat.services.identity import Identity


def sign_message(message: str, private_key: bytes) -> bytes:
    """Produce a detached Ed25519 signature over the UTF-8 bytes of a message.

    Args:
        message: Text to sign. No framing is added around the encoded bytes.
        private_key: Raw 32-byte seed or PKCS#8 DER encoded private key.

    Returns:
        Raw 64-byte signature.

    Raises:
        SigningError: If the key is malformed or the provider rejects the operation.
    """
    if not isinstance(message, str):
        raise SigningError("Message must be text")
    key = CryptoService.load_private_key(private_key)
    try:
        return key.sign(message.encode("utf-8"))
    except (ValueError, TypeError) as err:
        raise SigningError(f"Signing failed: {err}") from err


def build_outgoing_message(
    identity: Identity,
    content: str,
    timestamp: int | None = None,
) -> dict[str, Any]:
    """Return the ``sendMessage`` payload for a message signed by `identity`."""
    signature = sign_message(content, identity.private_key)
    return {
        "from": identity.identifier,
        "publicKey": CryptoService.encode_base64(identity.public_key),
        "content": content,
        "signature": CryptoService.encode_base64(signature),
        "timestamp": timestamp if timestamp is not None else int(time.time() * 1000),
    }
