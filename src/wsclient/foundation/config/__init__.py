"""Configuration loaded from environment variables."""

from .settings import (
    DEFAULT_URL,
    DEFAULT_WORKERS,
    HttpSettings,
    LoggingSettings,
    RuntimeSettings,
    WsClientSettings,
    clear_settings_cache,
    get_settings,
)

__all__ = [
    "DEFAULT_URL",
    "DEFAULT_WORKERS",
    "HttpSettings",
    "LoggingSettings",
    "RuntimeSettings",
    "WsClientSettings",
    "clear_settings_cache",
    "get_settings",
]
