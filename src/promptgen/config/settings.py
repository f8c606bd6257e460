"""Application settings.

All configuration is sourced from environment variables (and optionally `.env`).
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Typed environment-backed settings for promptgen."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    log_level: str = Field(default="INFO", alias="PROMPTGEN_LOG_LEVEL")
    json_logs: bool = Field(default=False, alias="PROMPTGEN_JSON_LOGS")

    # Rendering limits
    max_section_depth: int = Field(default=32, ge=1, alias="PROMPTGEN_MAX_SECTION_DEPTH")
    max_output_count: int = Field(default=1000, ge=1, alias="PROMPTGEN_MAX_OUTPUT_COUNT")

    # Join rule used by pick-many and shuffle nodes that name none
    default_separator_set: str = Field(
        default="oxford-comma", alias="PROMPTGEN_DEFAULT_SEPARATOR_SET"
    )

    # HTTP API
    api_host: str = Field(default="127.0.0.1", alias="PROMPTGEN_API_HOST")
    api_port: int = Field(default=5050, alias="PROMPTGEN_API_PORT")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
