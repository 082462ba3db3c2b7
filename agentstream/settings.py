"""Application settings using pydantic-settings.

Loads configuration from ``AGENTSTREAM_*`` environment variables with
.env file support.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="AGENTSTREAM_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    environment: Literal["development", "staging", "production", "testing"] = "development"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    throttle_delay_seconds: float = Field(
        default=0.1,
        gt=0.0,
        description="Cooldown window for keyed throttling of partial decisions",
    )
    log_args_preview_chars: int = Field(
        default=200,
        ge=0,
        description="Max characters of raw tool-call arguments included in log lines",
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    Returns:
        Settings instance (cached after first call)
    """
    return Settings()
