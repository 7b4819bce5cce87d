"""FastAPI dependencies for the notifications feature.

Provides Annotated type aliases for route handlers:

    @router.get("/admin/stats")
    async def queue_stats(session: SessionDep, service: NotificationServiceDep):
        ...
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from signal_notify.core.dependencies.database import get_db_session
from signal_notify.core.exceptions import ServiceUnavailableException
from signal_notify.features.notifications.processor import QueueProcessor
from signal_notify.features.notifications.service import (
    NotificationQueueService,
    get_notification_service,
)

SessionDep = Annotated[AsyncSession, Depends(get_db_session)]

NotificationServiceDep = Annotated[NotificationQueueService, Depends(get_notification_service)]


def get_queue_processor(request: Request) -> QueueProcessor:
    """Queue processor created by the application lifespan.

    Raises:
        ServiceUnavailableException: If the lifespan did not build one.
    """
    processor: QueueProcessor | None = getattr(request.app.state, "queue_processor", None)
    if processor is None:
        raise ServiceUnavailableException(
            detail="Queue processor is not available",
            type="queue-processor-unavailable",
        )
    return processor


QueueProcessorDep = Annotated[QueueProcessor, Depends(get_queue_processor)]


__all__ = [
    "NotificationServiceDep",
    "QueueProcessorDep",
    "SessionDep",
    "get_queue_processor",
]
