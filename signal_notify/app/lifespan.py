"""Application lifespan management.

Startup order:
    1. Logging
    2. Database (connection check, optional table creation)
    3. Channel registry and queue processor on ``app.state``
    4. Processor polling, when ``QUEUE_ENABLED``

Shutdown runs in reverse.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
import logging
from typing import TYPE_CHECKING

import httpx

from signal_notify.core.settings import (
    get_app_settings,
    get_channel_settings,
    get_logging_settings,
    get_queue_settings,
)
from signal_notify.features.notifications.channels import default_registry
from signal_notify.features.notifications.processor import QueueProcessor
from signal_notify.infra.database import AsyncSessionLocal, close_database, init_database
from signal_notify.infra.logging import setup_logging
from signal_notify.infra.logging import shutdown as shutdown_logging

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from fastapi import FastAPI

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application lifecycle.

    Args:
        app: FastAPI application instance.
    """
    app_settings = get_app_settings()
    queue_settings = get_queue_settings()
    channel_settings = get_channel_settings()

    setup_logging(get_logging_settings())
    logger.info(
        "Starting application",
        extra={
            "service": app_settings.service_name,
            "version": app_settings.version,
            "environment": app_settings.environment,
        },
    )

    await init_database()

    http_client = httpx.AsyncClient(timeout=channel_settings.http_timeout_seconds)
    registry = default_registry(
        channel_settings,
        demo_mode=queue_settings.demo_mode,
        client=http_client,
    )
    processor = QueueProcessor(AsyncSessionLocal, registry, queue_settings)
    app.state.channel_registry = registry
    app.state.queue_processor = processor

    if queue_settings.enabled:
        await processor.start()
    else:
        logger.info("Queue processor disabled, cycles run only on demand")

    logger.info("Application startup complete", extra={"channels": registry.channels()})

    try:
        yield
    finally:
        logger.info("Shutting down application")

        await processor.stop()
        await http_client.aclose()
        await close_database()

        logger.info("Application shutdown complete")
        shutdown_logging()
