"""
Configuration settings for the entity REST client.

Uses Pydantic Settings to load environment variables for the server location,
transport behaviour, controller pipeline composition, and logging.
"""
from __future__ import annotations

from functools import lru_cache
from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Server
    base_url: str = Field("http://localhost:4053", alias="ENTITY_REST_BASE_URL")
    request_timeout_seconds: float = Field(30.0, alias="ENTITY_REST_TIMEOUT")
    charset: str = Field("utf-8", alias="ENTITY_REST_CHARSET")

    # Controller pipeline, innermost decorator first
    controller_decorators: List[str] = Field(
        default_factory=list, alias="ENTITY_REST_DECORATORS"
    )

    # Logging
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    log_json: bool = Field(False, alias="LOG_JSON")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Retrieve a cached instance of Settings to avoid repeated env parsing.
    """
    return Settings()


__all__ = ["Settings", "get_settings"]
