"""Notification queue service used by the API and the CLI."""

from __future__ import annotations

from typing import TYPE_CHECKING

from signal_notify.core.database import InvalidStateError, NotFoundError
from signal_notify.core.exceptions import (
    ConflictException,
    NotFoundException,
    ValidationException,
)
from signal_notify.core.services import BaseService
from signal_notify.core.settings import get_queue_settings
from signal_notify.features.notifications.expander import SignalNotificationExpander
from signal_notify.features.notifications.metrics import notification_enqueued_total
from signal_notify.features.notifications.models import NotificationQueueItem
from signal_notify.features.notifications.repository import (
    NotificationLogRepository,
    NotificationQueueRepository,
    QueueStats,
    UserNotificationPreferenceRepository,
    get_notification_log_repository,
    get_notification_queue_repository,
    get_preference_repository,
)
from signal_notify.features.signals.repository import get_alert_signal_repository

if TYPE_CHECKING:
    from collections.abc import Sequence
    from uuid import UUID

    from sqlalchemy.ext.asyncio import AsyncSession

    from signal_notify.core.settings import QueueSettings
    from signal_notify.features.notifications.models import NotificationLog
    from signal_notify.features.notifications.schemas import NotificationCreate
    from signal_notify.features.signals.repository import AlertSignalRepository


class NotificationQueueService(BaseService):
    """Enqueue, inspect and requeue notifications.

    None of the methods commit.
    """

    def __init__(
        self,
        queue_repository: NotificationQueueRepository | None = None,
        log_repository: NotificationLogRepository | None = None,
        preference_repository: UserNotificationPreferenceRepository | None = None,
        signal_repository: AlertSignalRepository | None = None,
        settings: QueueSettings | None = None,
    ) -> None:
        super().__init__()
        self._queue = queue_repository or get_notification_queue_repository()
        self._logs = log_repository or get_notification_log_repository()
        self._settings = settings or get_queue_settings()
        self._expander = SignalNotificationExpander(
            signal_repository or get_alert_signal_repository(),
            preference_repository or get_preference_repository(),
            self._queue,
            brand_name=self._settings.brand_name,
            max_retries=self._settings.default_max_retries,
        )

    async def enqueue(
        self,
        session: AsyncSession,
        data: NotificationCreate,
    ) -> NotificationQueueItem:
        """Insert a pending notification built from an API or CLI payload.

        Raises:
            ValidationException: If the resolved attempt ceiling is below 1.
        """
        item = NotificationQueueItem(
            user_id=data.user_id,
            alert_id=data.alert_id,
            channel=data.channel,
            recipient=data.recipient,
            subject=data.subject,
            message=data.message,
            message_html=data.message_html,
            template_id=data.template_id,
            template_variables=data.template_variables,
            payload_metadata=data.metadata,
            priority=(
                data.priority if data.priority is not None else self._settings.default_priority
            ),
            scheduled_for=data.scheduled_for,
            max_retries=(
                data.max_retries
                if data.max_retries is not None
                else self._settings.default_max_retries
            ),
        )
        try:
            item = await self._queue.enqueue(session, item)
        except ValueError as e:
            raise ValidationException(
                detail=str(e),
                type="invalid-max-retries",
                extra={"max_retries": item.max_retries},
            ) from e
        notification_enqueued_total.labels(channel=item.channel).inc()
        return item

    async def queue_signal_notification(
        self,
        session: AsyncSession,
        alert_id: UUID,
        user_id: str,
    ) -> list[NotificationQueueItem]:
        """Fan a stored signal out to the user's enabled channels."""
        items = await self._expander.queue_signal_notification(session, alert_id, user_id)
        for item in items:
            notification_enqueued_total.labels(channel=item.channel).inc()
        return items

    async def get(self, session: AsyncSession, queue_id: UUID) -> NotificationQueueItem:
        try:
            return await self._queue.get_or_raise(session, queue_id)
        except NotFoundError as e:
            raise NotFoundException(
                detail=f"Notification {queue_id} not found",
                type="queue-item-not-found",
                extra={"queue_id": str(queue_id)},
            ) from e

    async def get_logs(self, session: AsyncSession, queue_id: UUID) -> Sequence[NotificationLog]:
        """Delivery attempts for an item, oldest first."""
        await self.get(session, queue_id)
        return await self._logs.list_for_request(session, queue_id)

    async def retry(
        self,
        session: AsyncSession,
        queue_id: UUID,
        *,
        max_retries: int | None = None,
    ) -> NotificationQueueItem:
        """Requeue a failed notification.

        Raises:
            NotFoundException: If the item does not exist.
            ConflictException: If the item is not failed.
        """
        item = await self.get(session, queue_id)
        try:
            item = await self._queue.retry(session, item, max_retries=max_retries)
        except InvalidStateError as e:
            raise ConflictException(
                detail=f"Only failed notifications can be retried (status is {e.current_state!r})",
                type="invalid-queue-state",
                extra={"queue_id": str(queue_id), "current_status": e.current_state},
            ) from e

        self.logger.info(
            "Manual retry requested",
            extra={"queue_id": str(queue_id), "max_retries": item.max_retries},
        )
        return item

    async def list_for_admin(
        self,
        session: AsyncSession,
        *,
        limit: int = 100,
        status: str | None = None,
        channel: str | None = None,
    ) -> Sequence[NotificationQueueItem]:
        self._lazy.debug(lambda: f"list_for_admin(limit={limit}, status={status}, channel={channel})")
        return await self._queue.list_for_admin(session, limit=limit, status=status, channel=channel)

    async def stats(self, session: AsyncSession) -> QueueStats:
        return await self._queue.stats(
            session,
            recent_failures=self._settings.recent_failures_limit,
        )


_notification_service: NotificationQueueService | None = None


def get_notification_service() -> NotificationQueueService:
    """Get the process-wide NotificationQueueService instance."""
    global _notification_service
    if _notification_service is None:
        _notification_service = NotificationQueueService()
    return _notification_service
