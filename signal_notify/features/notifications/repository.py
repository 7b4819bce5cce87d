"""Repositories for the notifications feature.

The queue repository is the notification store: every state transition of a
queue item goes through one of its methods, and none of them commit. The
caller owns the transaction.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from sqlalchemy import func, or_, select, update

from signal_notify.core.database import InvalidStateError, utcnow
from signal_notify.core.database.repository import BaseRepository
from signal_notify.core.database.types import to_utc
from signal_notify.features.notifications.models import (
    NotificationLog,
    NotificationQueueItem,
    NotificationStatus,
    UserNotificationPreference,
)

if TYPE_CHECKING:
    from collections.abc import Sequence
    from datetime import datetime
    from uuid import UUID

    from sqlalchemy.ext.asyncio import AsyncSession


@dataclass(slots=True, frozen=True)
class StatusChannelCount:
    """Number of queue items in one (status, channel) bucket."""

    status: str
    channel: str
    count: int


@dataclass(slots=True, frozen=True)
class QueueStats:
    """Aggregate view of the queue.

    Attributes:
        counts: Item counts grouped by status and channel
        total_processed: Number of delivery attempts logged
        recent_failures: Most recently failed items, newest first
    """

    counts: Sequence[StatusChannelCount]
    total_processed: int
    recent_failures: Sequence[NotificationQueueItem] = field(default_factory=list)

    def by_status(self) -> dict[str, int]:
        """Collapse the channel dimension."""
        totals: dict[str, int] = {}
        for row in self.counts:
            totals[row.status] = totals.get(row.status, 0) + row.count
        return totals


class NotificationQueueRepository(BaseRepository[NotificationQueueItem]):
    """Durable notification queue.

    Provides enqueue, due-item selection with priority ordering, the atomic
    pending -> processing claim, outcome transitions, manual retry and
    aggregate stats.
    """

    def __init__(self) -> None:
        super().__init__(NotificationQueueItem)

    async def enqueue(
        self,
        session: AsyncSession,
        item: NotificationQueueItem,
        *,
        as_of: datetime | None = None,
    ) -> NotificationQueueItem:
        """Insert a new pending item.

        Unset scheduling fields fall back to priority 5, three retries and
        ``scheduled_for=now``, and ``scheduled_for`` is converted to UTC. No
        deduplication is performed.

        Raises:
            ValueError: If ``max_retries`` is below 1; such an item could never
                be claimed or reach a terminal state.
        """
        item.status = NotificationStatus.PENDING.value
        item.current_attempts = 0
        item.next_retry_at = None
        if item.priority is None:
            item.priority = 5
        if item.max_retries is None:
            item.max_retries = 3
        if item.max_retries < 1:
            msg = f"max_retries must be at least 1, got {item.max_retries}"
            raise ValueError(msg)
        item.scheduled_for = to_utc(item.scheduled_for or as_of or utcnow())

        created = await self.create(session, item)
        self._logger.info(
            "Notification enqueued",
            extra={
                "queue_id": str(created.id),
                "channel": created.channel,
                "priority": created.priority,
                "operation": "db.enqueue",
            },
        )
        return created

    async def select_due(
        self,
        session: AsyncSession,
        *,
        limit: int = 50,
        as_of: datetime | None = None,
    ) -> Sequence[NotificationQueueItem]:
        """Select pending items whose schedule and backoff gate have passed.

        Ordered by priority (highest first), then creation time (oldest first).
        On PostgreSQL the rows are locked with ``FOR UPDATE SKIP LOCKED``.
        """
        now = as_of or utcnow()
        model = NotificationQueueItem
        stmt = (
            select(model)
            .where(
                model.status == NotificationStatus.PENDING.value,
                model.scheduled_for <= now,
                or_(model.next_retry_at.is_(None), model.next_retry_at <= now),
            )
            .order_by(model.priority.desc(), model.created_at.asc(), model.id.asc())
            .limit(limit)
        )
        if session.get_bind().dialect.name == "postgresql":
            stmt = stmt.with_for_update(skip_locked=True)

        result = await session.execute(stmt)
        items = result.scalars().all()

        self._lazy.debug(lambda: f"db.select_due(limit={limit}) -> {len(items)} items")
        return items

    async def mark_processing(
        self,
        session: AsyncSession,
        item: NotificationQueueItem,
        *,
        as_of: datetime | None = None,
    ) -> bool:
        """Claim ``item`` for delivery.

        A single conditional UPDATE moves the row from pending to processing
        and increments ``current_attempts``. Returns False when the row is no
        longer pending (claimed elsewhere, retried or cancelled) or has no
        attempts left.
        """
        now = as_of or utcnow()
        model = NotificationQueueItem
        stmt = (
            update(model)
            .where(
                model.id == item.id,
                model.status == NotificationStatus.PENDING.value,
                model.current_attempts < model.max_retries,
            )
            .values(
                status=NotificationStatus.PROCESSING.value,
                current_attempts=model.current_attempts + 1,
                last_attempt_at=now,
                updated_at=now,
            )
            .execution_options(synchronize_session=False)
        )
        result = await session.execute(stmt)
        claimed = result.rowcount == 1
        if claimed:
            await session.refresh(item)

        self._lazy.debug(lambda: f"db.mark_processing({item.id}) -> {'claimed' if claimed else 'skipped'}")
        return claimed

    async def mark_sent(
        self,
        session: AsyncSession,
        item: NotificationQueueItem,
        provider_message_id: str | None,
        *,
        as_of: datetime | None = None,
    ) -> NotificationQueueItem:
        """Record a successful delivery."""
        item.status = NotificationStatus.SENT.value
        item.sent_at = as_of or utcnow()
        item.provider_message_id = provider_message_id
        item.next_retry_at = None
        item.last_error = None
        await session.flush()

        self._lazy.debug(lambda: f"db.mark_sent({item.id}, message_id={provider_message_id})")
        return item

    async def mark_failed(
        self,
        session: AsyncSession,
        item: NotificationQueueItem,
        error: str | None,
        next_retry_at: datetime | None,
    ) -> NotificationQueueItem:
        """Record a failed attempt.

        With ``next_retry_at`` the item returns to pending behind the backoff
        gate; without it the item becomes terminally failed.
        """
        if next_retry_at is not None:
            item.status = NotificationStatus.PENDING.value
            item.next_retry_at = next_retry_at
        else:
            item.status = NotificationStatus.FAILED.value
            item.next_retry_at = None
        item.last_error = error
        await session.flush()

        self._lazy.debug(
            lambda: f"db.mark_failed({item.id}) -> {item.status}, next_retry_at={next_retry_at}"
        )
        return item

    async def retry(
        self,
        session: AsyncSession,
        item: NotificationQueueItem,
        *,
        max_retries: int | None = None,
    ) -> NotificationQueueItem:
        """Return a failed item to the queue.

        ``current_attempts`` is kept. When the item has no attempts left under
        the (optionally overridden) ceiling, the ceiling is raised to allow
        exactly one more attempt.

        Raises:
            InvalidStateError: If the item is not failed.
        """
        if item.status != NotificationStatus.FAILED.value:
            raise InvalidStateError(self.model.__name__, item.status, "retry")

        ceiling = max_retries if max_retries is not None else item.max_retries
        item.max_retries = max(ceiling, item.current_attempts + 1)
        item.status = NotificationStatus.PENDING.value
        item.next_retry_at = None
        item.last_error = None
        await session.flush()

        self._logger.info(
            "Notification requeued",
            extra={
                "queue_id": str(item.id),
                "attempts": item.current_attempts,
                "max_retries": item.max_retries,
                "operation": "db.retry",
            },
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
        """List items newest first, optionally filtered by status and channel."""
        model = NotificationQueueItem
        stmt = select(model).order_by(model.created_at.desc(), model.id.desc()).limit(limit)
        if status is not None:
            stmt = stmt.where(model.status == status)
        if channel is not None:
            stmt = stmt.where(model.channel == channel)

        result = await session.execute(stmt)
        items = result.scalars().all()

        self._lazy.debug(
            lambda: f"db.list_for_admin({limit=}, {status=}, {channel=}) -> {len(items)} items"
        )
        return items

    async def stats(self, session: AsyncSession, *, recent_failures: int = 10) -> QueueStats:
        """Counts by (status, channel), total attempts logged and recent failures."""
        model = NotificationQueueItem
        grouped = await session.execute(
            select(model.status, model.channel, func.count())
            .group_by(model.status, model.channel)
            .order_by(model.status, model.channel)
        )
        counts = [
            StatusChannelCount(status=status, channel=channel, count=count)
            for status, channel, count in grouped.all()
        ]

        total_processed = (
            await session.execute(select(func.count()).select_from(NotificationLog))
        ).scalar_one()

        failures = await session.execute(
            select(model)
            .where(model.status == NotificationStatus.FAILED.value)
            .order_by(model.updated_at.desc())
            .limit(recent_failures)
        )

        return QueueStats(
            counts=counts,
            total_processed=total_processed,
            recent_failures=failures.scalars().all(),
        )


class NotificationLogRepository(BaseRepository[NotificationLog]):
    """Append-only delivery log."""

    def __init__(self) -> None:
        super().__init__(NotificationLog)

    async def append(self, session: AsyncSession, entry: NotificationLog) -> NotificationLog:
        return await self.create(session, entry)

    async def list_for_request(
        self,
        session: AsyncSession,
        queue_id: UUID,
    ) -> Sequence[NotificationLog]:
        """All attempts for one queue item, oldest first."""
        stmt = (
            select(NotificationLog)
            .where(NotificationLog.queue_id == queue_id)
            .order_by(NotificationLog.created_at.asc(), NotificationLog.id.asc())
        )
        result = await session.execute(stmt)
        items = result.scalars().all()

        self._lazy.debug(lambda: f"db.list_for_request({queue_id}) -> {len(items)} entries")
        return items


class UserNotificationPreferenceRepository(BaseRepository[UserNotificationPreference]):
    """Signal alert preferences keyed by user id."""

    def __init__(self) -> None:
        super().__init__(UserNotificationPreference)

    async def get_for_user(
        self,
        session: AsyncSession,
        user_id: str,
    ) -> UserNotificationPreference | None:
        return await self.get_by(session, UserNotificationPreference.user_id, user_id)


# Singleton instances
_queue_repository: NotificationQueueRepository | None = None
_log_repository: NotificationLogRepository | None = None
_preference_repository: UserNotificationPreferenceRepository | None = None


def get_notification_queue_repository() -> NotificationQueueRepository:
    """Get the NotificationQueueRepository singleton."""
    global _queue_repository
    if _queue_repository is None:
        _queue_repository = NotificationQueueRepository()
    return _queue_repository


def get_notification_log_repository() -> NotificationLogRepository:
    """Get the NotificationLogRepository singleton."""
    global _log_repository
    if _log_repository is None:
        _log_repository = NotificationLogRepository()
    return _log_repository


def get_preference_repository() -> UserNotificationPreferenceRepository:
    """Get the UserNotificationPreferenceRepository singleton."""
    global _preference_repository
    if _preference_repository is None:
        _preference_repository = UserNotificationPreferenceRepository()
    return _preference_repository
