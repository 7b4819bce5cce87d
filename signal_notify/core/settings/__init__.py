"""Modular Pydantic Settings v2 configuration.

Settings are split by domain (app/db/logging/queue/channels), read from
environment variables and an optional .env file, frozen after load, and
cached through LRU loaders.

Import settings via cached loaders:
    from signal_notify.core.settings import get_queue_settings

Configuration precedence (highest to lowest):
    1. init kwargs (testing/overrides)
    2. Environment variables (production)
    3. .env file (development only)
    4. secrets_dir (Kubernetes/Docker secrets)
"""

from __future__ import annotations

from .app import AppSettings
from .loader import (
    clear_all_caches,
    get_app_settings,
    get_channel_settings,
    get_db_settings,
    get_logging_settings,
    get_queue_settings,
)
from .logs import LoggingSettings
from .notifications import ChannelSettings, QueueSettings
from .postgres import PostgresSettings

__all__ = [
    "AppSettings",
    "ChannelSettings",
    "LoggingSettings",
    "PostgresSettings",
    "QueueSettings",
    "clear_all_caches",
    "get_app_settings",
    "get_channel_settings",
    "get_db_settings",
    "get_logging_settings",
    "get_queue_settings",
]
