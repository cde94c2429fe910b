# src/octchat/services/__init__.py
"""Business logic services for the Octchat relay and client."""

from .crypto import CryptoService
from .identity import IdentityManager, IdentityStore
from .message_log import MessageLog
from .octra import OctraClient
from .registry import ConnectionRegistry
from .relay import Relay

__all__ = [
    "CryptoService",
    "IdentityManager",
    "IdentityStore",
    "MessageLog",
    "ConnectionRegistry",
    "Relay",
    "OctraClient",
]
