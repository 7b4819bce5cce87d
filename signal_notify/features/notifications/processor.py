"""Queue processor: polls the notification store and dispatches due items.

One processing cycle:
    1. Select due items (priority DESC, created_at ASC).
    2. For each item: claim it (pending -> processing), call the channel
       adapter, record the outcome and append a delivery log row.
    3. Commit after every item so one bad row never undoes earlier outcomes.

Cycles are single-flight per processor: a tick that fires while a cycle is
running returns immediately with ``skipped=True``.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timedelta
import time
from typing import TYPE_CHECKING
import uuid

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.date import DateTrigger
from apscheduler.triggers.interval import IntervalTrigger

from signal_notify.core.database import utcnow
from signal_notify.features.notifications.channels.base import DeliveryRequest, DeliveryResult
from signal_notify.features.notifications.metrics import (
    notification_attempts_total,
    notification_delivered_total,
    notification_delivery_duration_seconds,
    notification_exhausted_total,
    notification_processing_cycle_duration_seconds,
    notification_processing_cycles_skipped_total,
    notification_queue_due_items,
    notification_retries_scheduled_total,
)
from signal_notify.features.notifications.models import (
    NotificationLog,
    NotificationQueueItem,
    NotificationStatus,
    provider_for,
)
from signal_notify.features.notifications.repository import (
    NotificationLogRepository,
    NotificationQueueRepository,
    get_notification_log_repository,
    get_notification_queue_repository,
)
from signal_notify.infra.logging import get_logger, remove_from_log_context, set_log_context

if TYPE_CHECKING:
    from collections.abc import Callable

    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

    from signal_notify.core.settings import QueueSettings
    from signal_notify.features.notifications.channels.registry import ChannelRegistry

DELIVERY_FAILED = "DELIVERY_FAILED"


def compute_next_retry_at(
    current_attempts: int,
    max_retries: int,
    now: datetime,
    backoff_base_seconds: float = 60.0,
) -> datetime | None:
    """Backoff gate after a failed attempt, or None when attempts are exhausted.

    ``current_attempts`` already counts the failed attempt, so with the default
    base the first failure waits 2 minutes, the second 4.
    """
    if current_attempts >= max_retries:
        return None
    return now + timedelta(seconds=(2**current_attempts) * backoff_base_seconds)


@dataclass(slots=True)
class ProcessingReport:
    """Outcome of one processing cycle.

    Attributes:
        cycle_id: Short id carried in every log record of the cycle
        skipped: True when another cycle was already running
        selected: Due items returned by the store
        claimed: Items this cycle moved to processing
        sent: Successful deliveries
        retried: Failures rescheduled with backoff
        failed: Failures that exhausted their attempts
        errors: Infrastructure errors that aborted the cycle
    """

    cycle_id: str
    started_at: datetime
    skipped: bool = False
    selected: int = 0
    claimed: int = 0
    sent: int = 0
    retried: int = 0
    failed: int = 0
    duration_ms: int = 0
    errors: list[str] = field(default_factory=list)


class QueueProcessor:
    """Periodic dispatcher for the notification queue.

    Owns an APScheduler ``AsyncIOScheduler`` with an interval job plus a
    one-shot job shortly after start, and an ``asyncio.Lock`` guarding
    cycles.

    Example:
        processor = QueueProcessor(AsyncSessionLocal, default_registry(channels), queue_settings)
        await processor.start()
        ...
        await processor.stop()
    """

    JOB_ID = "notification-queue-processor"
    INITIAL_JOB_ID = "notification-queue-processor-initial"

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        registry: ChannelRegistry,
        settings: QueueSettings,
        *,
        queue_repository: NotificationQueueRepository | None = None,
        log_repository: NotificationLogRepository | None = None,
        scheduler: AsyncIOScheduler | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._session_factory = session_factory
        self._registry = registry
        self._settings = settings
        self._queue = queue_repository or get_notification_queue_repository()
        self._logs = log_repository or get_notification_log_repository()
        self._clock = clock
        self._lock = asyncio.Lock()
        self._scheduler = scheduler or AsyncIOScheduler(
            timezone="UTC",
            job_defaults={
                "coalesce": True,  # Combine missed ticks into one
                "max_instances": 1,
                "misfire_grace_time": settings.misfire_grace_seconds,
            },
        )
        self._logger = get_logger(__name__, component="queue_processor")

    @property
    def registry(self) -> ChannelRegistry:
        return self._registry

    @property
    def running(self) -> bool:
        """Whether the polling scheduler is started."""
        return self._scheduler.running

    @property
    def busy(self) -> bool:
        """Whether a processing cycle is in flight."""
        return self._lock.locked()

    async def start(self) -> None:
        """Schedule the polling job and a first cycle after the initial delay."""
        if self._scheduler.running:
            self._logger.warning("Queue processor is already running")
            return

        self._scheduler.add_job(
            func=self.process_queue,
            trigger=IntervalTrigger(seconds=self._settings.poll_interval_seconds),
            id=self.JOB_ID,
            name="Process notification queue",
            replace_existing=True,
        )
        self._scheduler.add_job(
            func=self.process_queue,
            trigger=DateTrigger(
                run_date=self._clock()
                + timedelta(seconds=self._settings.initial_delay_seconds)
            ),
            id=self.INITIAL_JOB_ID,
            name="Initial notification queue pass",
            replace_existing=True,
        )
        self._scheduler.start()
        self._logger.info(
            "Queue processor started",
            extra={
                "poll_interval_seconds": self._settings.poll_interval_seconds,
                "batch_size": self._settings.batch_size,
                "channels": self._registry.channels(),
            },
        )

    async def stop(self) -> None:
        """Stop scheduling and wait for an in-flight cycle to finish."""
        if not self._scheduler.running:
            self._logger.debug("Queue processor is not running")
            return

        self._scheduler.shutdown(wait=False)
        async with self._lock:
            pass
        self._logger.info("Queue processor stopped")

    async def process_queue(self) -> ProcessingReport:
        """Run one processing cycle.

        Returns immediately with ``skipped=True`` if a cycle is in flight.
        Infrastructure errors are logged, rolled back and reported; they
        never escape to the scheduler.
        """
        report = ProcessingReport(cycle_id=uuid.uuid4().hex[:12], started_at=self._clock())

        if self._lock.locked():
            notification_processing_cycles_skipped_total.inc()
            self._logger.debug("Processing cycle skipped, previous cycle still running")
            report.skipped = True
            return report

        async with self._lock:
            set_log_context(cycle_id=report.cycle_id)
            start = time.perf_counter()
            try:
                await self._run_cycle(report)
            except Exception as e:
                self._logger.exception(
                    "Processing cycle failed",
                    extra={"error": str(e), "claimed": report.claimed},
                )
                report.errors.append(f"{type(e).__name__}: {e}")
            finally:
                elapsed = time.perf_counter() - start
                report.duration_ms = int(elapsed * 1000)
                notification_processing_cycle_duration_seconds.observe(elapsed)
                remove_from_log_context("cycle_id")

        if report.selected:
            self._logger.info(
                "Processing cycle finished",
                extra={
                    "selected": report.selected,
                    "sent": report.sent,
                    "retried": report.retried,
                    "failed": report.failed,
                    "duration_ms": report.duration_ms,
                },
            )
        return report

    async def _run_cycle(self, report: ProcessingReport) -> None:
        async with self._session_factory() as session:
            try:
                due = await self._queue.select_due(
                    session,
                    limit=self._settings.batch_size,
                    as_of=self._clock(),
                )
                report.selected = len(due)
                notification_queue_due_items.set(len(due))

                for item in due:
                    entry = await self.process_item(session, item)
                    await session.commit()
                    if entry is None:
                        continue
                    report.claimed += 1
                    if entry.status == NotificationStatus.SENT:
                        report.sent += 1
                    elif item.status == NotificationStatus.PENDING:
                        report.retried += 1
                    else:
                        report.failed += 1
            except Exception:
                await session.rollback()
                raise

    async def process_item(
        self,
        session: AsyncSession,
        item: NotificationQueueItem,
    ) -> NotificationLog | None:
        """Attempt delivery of one item.

        Returns the appended log entry, or None when the item could not be
        claimed. Does not commit.
        """
        if not await self._queue.mark_processing(session, item, as_of=self._clock()):
            self._logger.debug("Item already claimed", extra={"queue_id": str(item.id)})
            return None

        set_log_context(queue_id=str(item.id), channel=item.channel)
        try:
            return await self._attempt(session, item)
        finally:
            remove_from_log_context("queue_id", "channel")

    async def _attempt(self, session: AsyncSession, item: NotificationQueueItem) -> NotificationLog:
        log = self._logger.bind(attempt=item.current_attempts, max_retries=item.max_retries)
        notification_attempts_total.labels(channel=item.channel).inc()

        start = time.perf_counter()
        result = await self._deliver(item)
        elapsed = time.perf_counter() - start
        processing_time_ms = int(elapsed * 1000)
        finished_at = self._clock()
        notification_delivery_duration_seconds.labels(channel=item.channel).observe(elapsed)

        if result.success:
            await self._queue.mark_sent(session, item, result.message_id, as_of=finished_at)
            notification_delivered_total.labels(channel=item.channel, status="sent").inc()
            log.info("Notification sent", extra={"provider_message_id": result.message_id})
        else:
            next_retry_at = compute_next_retry_at(
                item.current_attempts,
                item.max_retries,
                finished_at,
                self._settings.backoff_base_seconds,
            )
            await self._queue.mark_failed(session, item, result.error, next_retry_at)
            notification_delivered_total.labels(channel=item.channel, status="failed").inc()
            if next_retry_at is not None:
                notification_retries_scheduled_total.labels(channel=item.channel).inc()
                log.warning(
                    "Notification delivery failed, retry scheduled",
                    extra={"error": result.error, "next_retry_at": next_retry_at.isoformat()},
                )
            else:
                notification_exhausted_total.labels(channel=item.channel).inc()
                log.error(
                    "Notification delivery failed permanently",
                    extra={"error": result.error},
                )

        entry = NotificationLog(
            queue_id=item.id,
            user_id=item.user_id,
            channel=item.channel,
            recipient=item.recipient,
            status=(
                NotificationStatus.SENT.value if result.success else NotificationStatus.FAILED.value
            ),
            provider=provider_for(item.channel),
            provider_message_id=result.message_id,
            provider_response=result.as_log_payload(),
            processing_time_ms=processing_time_ms,
            delivery_time_ms=result.delivery_time_ms,
            error_code=None if result.success else DELIVERY_FAILED,
            error_message=result.error,
            sent_at=finished_at if result.success else None,
            delivered_at=finished_at if result.success else None,
        )
        return await self._logs.append(session, entry)

    async def _deliver(self, item: NotificationQueueItem) -> DeliveryResult:
        adapter = self._registry.get(item.channel)
        if adapter is None:
            return DeliveryResult.failure_result(f"No adapter registered for channel {item.channel!r}")

        try:
            return await adapter.send(DeliveryRequest.from_item(item))
        except Exception as e:
            self._logger.exception("Channel adapter raised", extra={"error": str(e)})
            return DeliveryResult.failure_result(f"{type(e).__name__}: {e}")
