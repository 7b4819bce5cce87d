"""API router for the notifications feature.

Queue Endpoints:
- POST /notifications/queue - Enqueue one notification
- POST /notifications/signals/{alert_id}/users/{user_id} - Fan a signal out to a user

Admin Endpoints:
- GET /notifications/admin/queue - List queue items with filters
- GET /notifications/admin/queue/{queue_id} - Queue item with its delivery log
- POST /notifications/admin/queue/{queue_id}/retry - Manual retry
- GET /notifications/admin/stats - Queue statistics
- POST /notifications/admin/process - Run one processing cycle now
"""

from __future__ import annotations

import logging
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Body, Query, status

from signal_notify.features.notifications.dependencies import (
    NotificationServiceDep,
    QueueProcessorDep,
    SessionDep,
)
from signal_notify.features.notifications.schemas import (
    CHANNEL_PATTERN,
    STATUS_PATTERN,
    NotificationCreate,
    NotificationDetailResponse,
    NotificationLogResponse,
    NotificationQueueItemResponse,
    ProcessingReportResponse,
    QueueStatsResponse,
    RetryRequest,
    SignalFanoutResponse,
    StatusChannelCountResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/notifications",
    tags=["notifications"],
)

admin_router = APIRouter(
    prefix="/notifications/admin",
    tags=["notifications-admin"],
)


# ============================================================================
# Queue Endpoints
# ============================================================================


@router.post(
    "/queue",
    response_model=NotificationQueueItemResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Enqueue a notification",
    description="""
Insert a pending notification for later delivery.

Unset fields default to the queue settings: priority 5, three attempts,
dispatch as soon as possible. No deduplication is performed.
""",
)
async def enqueue_notification(
    payload: NotificationCreate,
    session: SessionDep,
    service: NotificationServiceDep,
) -> NotificationQueueItemResponse:
    item = await service.enqueue(session, payload)
    await session.commit()
    return NotificationQueueItemResponse.model_validate(item)


@router.post(
    "/signals/{alert_id}/users/{user_id}",
    response_model=SignalFanoutResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Queue signal notifications for a user",
    description="""
Render the stored signal for every channel the user enabled and enqueue one
notification per channel with an address.

An unknown signal or a user without preferences queues nothing.
""",
)
async def queue_signal_notification(
    alert_id: UUID,
    user_id: str,
    session: SessionDep,
    service: NotificationServiceDep,
) -> SignalFanoutResponse:
    items = await service.queue_signal_notification(session, alert_id, user_id)
    await session.commit()

    return SignalFanoutResponse(
        alert_id=alert_id,
        user_id=user_id,
        count=len(items),
        queued=[NotificationQueueItemResponse.model_validate(item) for item in items],
    )


# ============================================================================
# Admin Endpoints
# ============================================================================


@admin_router.get(
    "/queue",
    response_model=list[NotificationQueueItemResponse],
    summary="List queue items",
)
async def list_queue(
    session: SessionDep,
    service: NotificationServiceDep,
    limit: Annotated[int, Query(ge=1, le=500, description="Maximum results")] = 100,
    status_filter: Annotated[
        str | None,
        Query(alias="status", pattern=STATUS_PATTERN, description="Filter by status"),
    ] = None,
    channel: Annotated[
        str | None,
        Query(pattern=CHANNEL_PATTERN, description="Filter by channel"),
    ] = None,
) -> list[NotificationQueueItemResponse]:
    """List queue items newest first."""
    items = await service.list_for_admin(
        session,
        limit=limit,
        status=status_filter,
        channel=channel,
    )
    return [NotificationQueueItemResponse.model_validate(item) for item in items]


@admin_router.get(
    "/queue/{queue_id}",
    response_model=NotificationDetailResponse,
    summary="Get queue item with delivery log",
    responses={404: {"description": "Queue item not found"}},
)
async def get_queue_item(
    queue_id: UUID,
    session: SessionDep,
    service: NotificationServiceDep,
) -> NotificationDetailResponse:
    item = await service.get(session, queue_id)
    logs = await service.get_logs(session, queue_id)

    return NotificationDetailResponse(
        **NotificationQueueItemResponse.model_validate(item).model_dump(),
        logs=[NotificationLogResponse.model_validate(entry) for entry in logs],
    )


@admin_router.post(
    "/queue/{queue_id}/retry",
    response_model=NotificationQueueItemResponse,
    summary="Retry a failed notification",
    description="""
Return a failed notification to the queue for immediate dispatch.

The attempt counter is kept. When the item has no attempts left, the ceiling
is raised to allow one more (or set to `max_retries` when given and higher).
""",
    responses={
        404: {"description": "Queue item not found"},
        409: {"description": "Queue item is not failed"},
    },
)
async def retry_notification(
    queue_id: UUID,
    session: SessionDep,
    service: NotificationServiceDep,
    payload: Annotated[RetryRequest | None, Body()] = None,
) -> NotificationQueueItemResponse:
    item = await service.retry(
        session,
        queue_id,
        max_retries=payload.max_retries if payload else None,
    )
    await session.commit()

    logger.info(
        "Notification retry queued",
        extra={"queue_id": str(queue_id), "attempts": item.current_attempts},
    )
    return NotificationQueueItemResponse.model_validate(item)


@admin_router.get(
    "/stats",
    response_model=QueueStatsResponse,
    summary="Queue statistics",
)
async def queue_stats(
    session: SessionDep,
    service: NotificationServiceDep,
) -> QueueStatsResponse:
    """Counts by status and channel, attempts logged and recent failures."""
    stats = await service.stats(session)

    return QueueStatsResponse(
        counts=[StatusChannelCountResponse.model_validate(row) for row in stats.counts],
        by_status=stats.by_status(),
        total_processed=stats.total_processed,
        recent_failures=[
            NotificationQueueItemResponse.model_validate(item) for item in stats.recent_failures
        ],
    )


@admin_router.post(
    "/process",
    response_model=ProcessingReportResponse,
    summary="Run one processing cycle",
    description="Returns `skipped=true` when a cycle is already in flight.",
    responses={503: {"description": "Queue processor not available"}},
)
async def process_queue(processor: QueueProcessorDep) -> ProcessingReportResponse:
    report = await processor.process_queue()
    return ProcessingReportResponse.model_validate(report)


__all__ = ["admin_router", "router"]
