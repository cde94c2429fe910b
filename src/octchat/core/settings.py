"""Application settings and configuration.

This module defines all configuration options for the Octchat relay and
client tooling. Settings are loaded from environment variables with sensible
defaults.
"""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Settings can be overridden via environment variables or .env files.
    """

    # Application metadata
    app_name: str = Field(default="Octchat", alias="APP_NAME")
    app_version: str = Field(default="1.0.0", alias="APP_VERSION")
    debug: bool = Field(default=False, alias="DEBUG")

    # Relay listener
    host: str = Field(default="0.0.0.0", alias="HOST")
    port: int = Field(default=3000, alias="PORT")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Relay state
    message_log_capacity: int = Field(default=100, ge=1, alias="MESSAGE_LOG_CAPACITY")
    relay_delivery_timeout_seconds: float = Field(
        default=5.0,
        gt=0,
        alias="RELAY_DELIVERY_TIMEOUT_SECONDS",
    )

    # Octra chain RPC (configured and health-checked only)
    octra_rpc: str = Field(default="https://octra.network", alias="OCTRA_RPC")
    octra_http_timeout_seconds: float = Field(
        default=10.0,
        alias="OCTRA_HTTP_TIMEOUT_SECONDS",
    )
    octra_health_timeout_seconds: float = Field(
        default=5.0,
        alias="OCTRA_HEALTH_TIMEOUT_SECONDS",
    )

    # Client-side identity storage
    identity_dir: Path = Field(
        default=Path.home() / ".octchat",
        alias="OCTCHAT_IDENTITY_DIR",
    )

    # CORS configuration for web frontend access
    cors_origins: list[str] = Field(
        default=["*"],
        alias="CORS_ORIGINS",
    )
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST"],
        alias="CORS_ALLOW_METHODS",
    )
    cors_allow_headers: list[str] = Field(
        default=["*"],
        alias="CORS_ALLOW_HEADERS",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        populate_by_name=True,
        extra="ignore",
    )

    @property
    def log_level_name(self) -> str:
        """Return the configured log level normalised for the logging module."""
        return self.log_level.strip().upper()


settings = Settings()
