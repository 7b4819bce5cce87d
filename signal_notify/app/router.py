"""Router registry and setup."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from signal_notify.core.settings import get_app_settings
from signal_notify.features.health.router import router as health_router
from signal_notify.features.metrics.router import router as metrics_router
from signal_notify.features.notifications.router import (
    admin_router as notifications_admin_router,
)
from signal_notify.features.notifications.router import router as notifications_router

if TYPE_CHECKING:
    from fastapi import FastAPI

    from signal_notify.core.settings import AppSettings

logger = logging.getLogger(__name__)


def setup_routers(app: FastAPI, app_settings: AppSettings | None = None) -> None:
    """Register all feature routers with the application.

    Args:
        app: FastAPI application instance.
        app_settings: Optional application settings override for the API prefix.
    """
    app_settings = app_settings or get_app_settings()
    api_prefix = app_settings.api_prefix

    # Unprefixed: /metrics and /health
    app.include_router(metrics_router)
    app.include_router(health_router)

    app.include_router(notifications_router, prefix=api_prefix)
    app.include_router(notifications_admin_router, prefix=api_prefix)

    logger.info("Routers registered", extra={"api_prefix": api_prefix})
