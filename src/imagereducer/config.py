"""Environment-based configuration for the image reducer."""

from __future__ import annotations

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from IMAGEREDUCER_* environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="IMAGEREDUCER_",
        case_sensitive=False,
    )

    # Server
    host: str = "0.0.0.0"  # noqa: S104
    port: int = 3000
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # Input limits
    max_file_size: int = Field(default=33_554_432, ge=1)
    max_image_pixels: int = Field(default=50_000_000, ge=1)

    # Encoding
    jpeg_quality: int = Field(default=75, ge=1, le=95)


def get_settings() -> Settings:
    """Create and return application settings."""
    return Settings()
