"""Environment-based configuration using pydantic-settings.

Provides type-safe, validated configuration from environment variables
with sensible defaults. Supports .env files and nested configuration.

Example:
    >>> from wsclient.foundation.config import get_settings
    >>> settings = get_settings()
    >>> settings.url
    'http://cn.bing.com'
    >>> settings.logging.level
    'WARNING'

    # Or with environment variables:
    # WSCLIENT_URL=https://example.com
    # WSCLIENT_HTTP_TIMEOUT=10
    # WSCLIENT_RUNTIME_MAX_WORKERS=8
"""

from __future__ import annotations

import os
from functools import lru_cache
from typing import Literal

from pydantic import (
    ByteSize,
    Field,
    PositiveFloat,
    PositiveInt,
    computed_field,
    field_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict

_CPU_COUNT = os.cpu_count() or 1
DEFAULT_WORKERS = min(32, _CPU_COUNT + 4)  # I/O bound heuristic
DEFAULT_URL = "http://cn.bing.com"


class HttpSettings(BaseSettings):
    """HTTP client default configuration."""

    model_config = SettingsConfigDict(
        env_prefix="WSCLIENT_HTTP_",
        extra="ignore",
    )

    timeout: PositiveFloat | None = Field(
        default=None,
        description="Request timeout in seconds (None keeps the transport default)",
    )
    follow_redirects: bool = True
    max_redirects: PositiveInt = Field(default=5, le=30)
    verify_ssl: bool = True
    user_agent: str | None = Field(default=None, description="User-Agent header sent on every request")
    max_connections: PositiveInt = Field(default=100)
    max_keepalive_connections: PositiveInt = Field(default=20)
    max_response_size: ByteSize | None = Field(
        default=None,
        description="Reject bodies larger than this (e.g. '10MB'); None = unlimited",
    )

    @computed_field
    @property
    def max_response_size_bytes(self) -> int | None:
        return int(self.max_response_size) if self.max_response_size is not None else None


class RuntimeSettings(BaseSettings):
    """Worker pool and streaming configuration."""

    model_config = SettingsConfigDict(
        env_prefix="WSCLIENT_RUNTIME_",
        extra="ignore",
    )

    max_workers: PositiveInt = Field(default=DEFAULT_WORKERS, description="Worker threads owned by the runtime")
    thread_name_prefix: str = "wsclient-"
    chunk_size: PositiveInt = Field(default=8192, description="Chunk size for streamed bodies")


class LoggingSettings(BaseSettings):
    """Logging configuration."""

    model_config = SettingsConfigDict(
        env_prefix="WSCLIENT_LOG_",
        extra="ignore",
    )

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "WARNING"
    format: Literal["console", "json", "none"] = "console"

    @field_validator("level", mode="before")
    @classmethod
    def _upper_level(cls, v: str) -> str:
        return v.upper() if isinstance(v, str) else v


class WsClientSettings(BaseSettings):
    """Root settings for wsclient.

    Loads configuration from environment variables with WSCLIENT_ prefix.
    Supports nested configuration and .env files.

    Example environment variables:
        WSCLIENT_URL=https://example.com
        WSCLIENT_HTTP_FOLLOW_REDIRECTS=false
        WSCLIENT_LOG_LEVEL=DEBUG
        WSCLIENT_LOG_FORMAT=json
    """

    model_config = SettingsConfigDict(
        env_prefix="WSCLIENT_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
        validate_default=True,
    )

    debug: bool = Field(default=False, description="Enable debug logging")
    url: str = Field(default=DEFAULT_URL, description="URL fetched by the example program")

    http: HttpSettings = Field(default_factory=HttpSettings)
    runtime: RuntimeSettings = Field(default_factory=RuntimeSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @field_validator("url", mode="before")
    @classmethod
    def _strip_url(cls, v: str) -> str:
        return v.strip() if isinstance(v, str) else v

    @computed_field
    @property
    def log_level(self) -> str:
        """Effective log level (debug flag forces DEBUG)."""
        return "DEBUG" if self.debug else self.logging.level


@lru_cache(maxsize=1)
def get_settings() -> WsClientSettings:
    """Get the global settings instance (cached)."""
    return WsClientSettings()


def clear_settings_cache() -> None:
    """Clear the settings cache (useful for testing).

    After calling this, the next get_settings() call will
    reload configuration from environment.
    """
    get_settings.cache_clear()
