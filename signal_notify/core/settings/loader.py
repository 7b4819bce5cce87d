"""LRU-cached settings loaders.

Settings are loaded and validated once, then cached for the lifetime of the process.

Usage:
    from signal_notify.core.settings.loader import get_queue_settings

    settings = get_queue_settings()  # First call: loads and validates
    settings = get_queue_settings()  # Subsequent calls: returns cached instance

Testing:
    In tests, clear the caches to force reload:
    clear_all_caches()

    Or build instances directly:
    settings = QueueSettings(batch_size=5)
"""

from __future__ import annotations

from functools import lru_cache

from .app import AppSettings
from .logs import LoggingSettings
from .notifications import ChannelSettings, QueueSettings
from .postgres import PostgresSettings


@lru_cache(maxsize=1)
def get_app_settings() -> AppSettings:
    """Get cached application settings.

    Returns:
        Validated and frozen AppSettings instance.
    """
    return AppSettings()


@lru_cache(maxsize=1)
def get_db_settings() -> PostgresSettings:
    """Get cached database settings.

    Returns:
        Validated and frozen PostgresSettings instance.
    """
    return PostgresSettings()


@lru_cache(maxsize=1)
def get_logging_settings() -> LoggingSettings:
    """Get cached logging settings.

    Returns:
        Validated and frozen LoggingSettings instance.
    """
    return LoggingSettings()


@lru_cache(maxsize=1)
def get_queue_settings() -> QueueSettings:
    """Get cached queue processor settings.

    Returns:
        Validated and frozen QueueSettings instance.
    """
    return QueueSettings()


@lru_cache(maxsize=1)
def get_channel_settings() -> ChannelSettings:
    """Get cached delivery channel settings.

    Returns:
        Validated and frozen ChannelSettings instance.
    """
    return ChannelSettings()


def clear_all_caches() -> None:
    """Clear every cached settings instance (tests and reloads)."""
    get_app_settings.cache_clear()
    get_db_settings.cache_clear()
    get_logging_settings.cache_clear()
    get_queue_settings.cache_clear()
    get_channel_settings.cache_clear()
