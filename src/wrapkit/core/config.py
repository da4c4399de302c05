"""
Environment settings for wrapkit.

Per-wrapper behavior lives in WrapConfig; these settings cover process-wide
defaults read from environment variables or a .env file.
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from wrapkit.core.models import Priority


class WrapkitSettings(BaseSettings):
    """Process-wide wrapkit settings."""

    model_config = SettingsConfigDict(
        env_prefix="WRAPKIT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Logging
    log_level: str = "INFO"
    log_format: str = "console"

    # Pipeline defaults
    default_priority: Priority = Priority.NORMAL
    concurrency_retry_delay_ms: int = Field(
        default=50, gt=0, description="Retry delay when a concurrency cap is reached"
    )
    stats_window_seconds: float = Field(
        default=60.0, gt=0, description="Window for requests_per_minute"
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v = v.upper()
        if v not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return v

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        v = v.lower()
        if v not in {"json", "console"}:
            raise ValueError(f"Invalid log format: {v}. Must be 'json' or 'console'")
        return v


@lru_cache()
def get_settings() -> WrapkitSettings:
    """Get cached settings."""
    return WrapkitSettings()


def reload_settings() -> WrapkitSettings:
    """Reload settings (clears cache)."""
    get_settings.cache_clear()
    return get_settings()
