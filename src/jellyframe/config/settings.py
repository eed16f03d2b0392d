"""
Application settings and configuration management.
"""

from __future__ import annotations

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

from jellyframe import __version__


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    app_name: str = Field(default="jellyframe")
    app_version: str = Field(default=__version__)
    debug: bool = Field(default=False)
    log_level: str = Field(default="INFO")

    # Media server
    server_url: str = Field(default="http://localhost:8096")
    api_key: str | None = Field(default=None)
    image_quality: int = Field(default=90, ge=1, le=100)

    # Cache store
    cache_max_bytes: int = Field(default=64 * 1024 * 1024, ge=1)
    cache_max_entries: int = Field(default=256, ge=1)

    # Prefetch
    preload_distance: int = Field(default=2, ge=0)
    prefetch_workers: int = Field(default=4, ge=1)
    max_preload_count: int = Field(default=10, ge=1)

    # Network
    max_concurrent_fetches: int = Field(default=6, ge=1)
    fetch_timeout: float = Field(default=10.0, gt=0)
    retry_attempts: int = Field(default=2, ge=0)
    retry_backoff: float = Field(default=0.5, ge=0)

    # Pagination
    page_size: int = Field(default=50, ge=1)

    @field_validator("server_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Normalise the server URL so paths can be appended directly."""
        v = v.strip()
        if not v:
            raise ValueError("server_url cannot be empty")
        return v.rstrip("/")

    @field_validator("api_key", mode="before")
    @classmethod
    def blank_api_key_is_none(cls, v: str | None) -> str | None:
        """Treat an empty API key as unset."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Invalid log level: {v}")
        return v.upper()

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "env_prefix": "JELLYFRAME_",
        "case_sensitive": False,
    }


def get_settings() -> Settings:
    """Get application settings."""
    return Settings()


# Global settings instance
settings = get_settings()
