"""API endpoint modules for version 1."""

from .messages import router as messages_router
from .relay import router as relay_router
from .system import router as system_router

__all__ = [
    "messages_router",
    "relay_router",
    "system_router",
]
