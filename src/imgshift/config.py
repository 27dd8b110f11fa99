"""Environment-based configuration for imgshift."""

from __future__ import annotations

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from IMGSHIFT_* environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="IMGSHIFT_",
        case_sensitive=False,
    )

    # Server
    host: str = "0.0.0.0"  # noqa: S104
    port: int = 3001
    cors_origins: list[str] = ["http://localhost:3000"]

    # Input limits
    max_file_size: int = Field(default=5 * 1024 * 1024, ge=1)
    max_image_pixels: int = Field(default=100_000_000, ge=1)

    # Concurrency (queue_timeout None = wait for a free slot indefinitely)
    max_concurrent: int = Field(default=4, ge=1)
    queue_timeout: float | None = Field(default=None, gt=0)

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"


def get_settings() -> Settings:
    """Create and return application settings."""
    return Settings()
