# src/octchat/main.py
"""Main entry point for the Octchat relay."""

from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from octchat.api.v1 import messages_router, relay_router, system_router
from octchat.core.settings import settings
from octchat.services.octra import get_octra_client

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    """Apply the configured log level to the root logger."""
    logging.basicConfig(
        level=settings.log_level_name,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


# Initialize FastAPI app
app = FastAPI(
    title="Octchat Relay",
    description="Signature-gated real-time message relay",
    version=settings.app_version,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)

# Include API routers
app.include_router(system_router)
app.include_router(messages_router, prefix="/api")
app.include_router(relay_router)


@app.on_event("startup")
async def on_startup() -> None:
    configure_logging()
    logger.info("Octra network RPC: %s", get_octra_client().rpc_url)
    logger.info("%s relay listening on port %d", settings.app_name, settings.port)


@app.on_event("shutdown")
async def on_shutdown() -> None:
    await get_octra_client().close()


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with basic information about the relay."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "description": "Signature-gated real-time message relay",
        "websocket": "/ws",
        "health": "/health",
    }


def run() -> None:
    """Serve the relay with uvicorn using the configured host and port."""
    import uvicorn

    configure_logging()
    uvicorn.run(
        "octchat.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level_name.lower(),
    )


if __name__ == "__main__":
    run()
