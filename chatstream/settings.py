"""Client settings using pydantic-settings.

Loads configuration from environment variables with .env file support.
"""

from functools import lru_cache
from typing import Literal

from pydantic import AliasChoices, Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Client configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,  # Allow both field name and alias
    )

    # Environment
    environment: Literal["development", "staging", "production", "testing"] = "development"
    debug: bool = False
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # Backend
    backend_url: str = Field(
        default="http://localhost:8000",
        description="Chat backend base URL",
        validation_alias=AliasChoices(
            "backend_url",
            "backend_server_url",
            "next_public_backend_server_url",
        ),
    )
    api_token: SecretStr = Field(
        default=SecretStr(""),
        description="Bearer token attached to backend requests (empty = no Authorization header)",
    )
    user_id: str = Field(
        default="",
        description="Identity of the signed-in user, stamped on optimistic messages",
    )

    # Timeouts (seconds)
    request_timeout: float = Field(default=30.0, gt=0, description="Timeout for plain requests")
    stream_timeout: float = Field(
        default=900.0,
        gt=0,
        description="Read timeout while waiting for the next stream chunk",
    )
    connect_timeout: float = Field(default=10.0, gt=0)

    # Streaming behaviour
    rollback_on_cancel: bool = Field(
        default=True,
        description="Remove the optimistic user message when a stream is cancelled",
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Uses lru_cache to ensure settings are loaded once and reused.
    """
    return Settings()
