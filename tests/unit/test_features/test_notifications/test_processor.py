"""Tests for the queue processor and retry policy."""

from __future__ import annotations

from datetime import timedelta
from unittest.mock import AsyncMock

import pytest
from sqlalchemy import select

from signal_notify.features.notifications.channels import ChannelRegistry, DeliveryResult
from signal_notify.features.notifications.models import (
    NotificationLog,
    NotificationQueueItem,
    NotificationStatus,
)
from signal_notify.features.notifications.processor import (
    DELIVERY_FAILED,
    QueueProcessor,
    compute_next_retry_at,
)
from signal_notify.features.notifications.repository import NotificationQueueRepository
from tests.utils import NOW, insert, make_adapter, make_queue_item, reload


def registry_with(*adapters) -> ChannelRegistry:
    registry = ChannelRegistry()
    for adapter in adapters:
        registry.register(adapter)
    return registry


async def logs_for(session_factory, queue_id) -> list[NotificationLog]:
    async with session_factory() as session:
        result = await session.execute(
            select(NotificationLog)
            .where(NotificationLog.queue_id == queue_id)
            .order_by(NotificationLog.created_at, NotificationLog.id)
        )
        return list(result.scalars().all())


@pytest.mark.unit
class TestComputeNextRetryAt:
    @pytest.mark.parametrize(
        ("attempts", "expected_wait"),
        [(1, timedelta(minutes=2)), (2, timedelta(minutes=4))],
    )
    def test_exponential_backoff(self, attempts, expected_wait):
        assert compute_next_retry_at(attempts, 3, NOW) == NOW + expected_wait

    def test_exhausted(self):
        assert compute_next_retry_at(3, 3, NOW) is None
        assert compute_next_retry_at(4, 3, NOW) is None

    def test_custom_base(self):
        assert compute_next_retry_at(1, 3, NOW, backoff_base_seconds=1) == NOW + timedelta(seconds=2)


@pytest.mark.unit
class TestProcessQueue:
    async def test_successful_delivery(self, session_factory, processor_factory):
        adapter = make_adapter("email", DeliveryResult.success_result("sg-123", delivery_time_ms=40))
        processor = processor_factory(registry_with(adapter))
        (item,) = await insert(session_factory, make_queue_item())

        report = await processor.process_queue()

        assert (report.selected, report.claimed, report.sent) == (1, 1, 1)
        assert report.errors == []
        stored = await reload(session_factory, NotificationQueueItem, item.id)
        assert stored.status == NotificationStatus.SENT
        assert stored.current_attempts == 1
        assert stored.provider_message_id == "sg-123"
        assert stored.sent_at == NOW

        (entry,) = await logs_for(session_factory, item.id)
        assert entry.status == "sent"
        assert entry.provider == "sendgrid"
        assert entry.provider_message_id == "sg-123"
        assert entry.delivery_time_ms == 40
        assert entry.error_code is None
        assert entry.provider_response["success"] is True

        request = adapter.send.await_args.args[0]
        assert request.queue_id == item.id
        assert request.recipient == "trader@example.com"

    async def test_failure_schedules_retry_with_backoff(
        self, session_factory, processor_factory, clock
    ):
        adapter = make_adapter("email", DeliveryResult.failure_result("SendGrid API error (503)"))
        processor = processor_factory(registry_with(adapter))
        (item,) = await insert(session_factory, make_queue_item())

        report = await processor.process_queue()

        assert report.retried == 1
        stored = await reload(session_factory, NotificationQueueItem, item.id)
        assert stored.status == NotificationStatus.PENDING
        assert stored.current_attempts == 1
        assert stored.next_retry_at == NOW + timedelta(minutes=2)
        assert stored.last_error == "SendGrid API error (503)"

        (entry,) = await logs_for(session_factory, item.id)
        assert entry.status == "failed"
        assert entry.error_code == DELIVERY_FAILED
        assert entry.error_message == "SendGrid API error (503)"
        assert entry.sent_at is None

    async def test_backoff_gate_holds_item_until_due(
        self, session_factory, processor_factory, clock
    ):
        adapter = make_adapter(
            "email",
            DeliveryResult.failure_result("down"),
            DeliveryResult.success_result("sg-2"),
        )
        processor = processor_factory(registry_with(adapter))
        (item,) = await insert(session_factory, make_queue_item())

        await processor.process_queue()
        clock.advance(seconds=119)
        early = await processor.process_queue()
        clock.advance(seconds=1)
        on_time = await processor.process_queue()

        assert early.selected == 0
        assert on_time.sent == 1
        stored = await reload(session_factory, NotificationQueueItem, item.id)
        assert stored.status == NotificationStatus.SENT
        assert stored.current_attempts == 2

    async def test_exhausts_after_max_retries(self, session_factory, processor_factory, clock):
        adapter = make_adapter(
            "email",
            *[DeliveryResult.failure_result(f"failure {n}") for n in range(1, 4)],
        )
        processor = processor_factory(registry_with(adapter))
        (item,) = await insert(session_factory, make_queue_item(max_retries=3))

        first = await processor.process_queue()
        clock.advance(minutes=2)
        second = await processor.process_queue()
        clock.advance(minutes=4)
        third = await processor.process_queue()
        clock.advance(hours=1)
        fourth = await processor.process_queue()

        assert (first.retried, second.retried, third.failed) == (1, 1, 1)
        assert fourth.selected == 0
        stored = await reload(session_factory, NotificationQueueItem, item.id)
        assert stored.status == NotificationStatus.FAILED
        assert stored.current_attempts == 3
        assert stored.next_retry_at is None
        assert stored.last_error == "failure 3"

        entries = await logs_for(session_factory, item.id)
        assert len(entries) == 3
        assert all(e.status == "failed" for e in entries)
        assert adapter.send.await_count == 3

    async def test_manual_retry_recovers_exhausted_item(
        self, session_factory, processor_factory, clock
    ):
        adapter = make_adapter(
            "sms",
            DeliveryResult.failure_result("rejected"),
            DeliveryResult.success_result("SM1"),
        )
        processor = processor_factory(registry_with(adapter))
        (item,) = await insert(
            session_factory,
            make_queue_item(channel="sms", recipient="+15551234567", max_retries=1),
        )

        await processor.process_queue()
        async with session_factory() as session:
            failed = await session.get(NotificationQueueItem, item.id)
            assert failed.status == NotificationStatus.FAILED
            await NotificationQueueRepository().retry(session, failed)
            await session.commit()
        report = await processor.process_queue()

        assert report.sent == 1
        stored = await reload(session_factory, NotificationQueueItem, item.id)
        assert stored.status == NotificationStatus.SENT
        assert stored.current_attempts == 2
        assert stored.max_retries == 2
        assert len(await logs_for(session_factory, item.id)) == 2

    async def test_dispatches_in_priority_then_fifo_order(
        self, session_factory, processor_factory
    ):
        adapter = make_adapter("email", *[DeliveryResult.success_result(None)] * 4)
        processor = processor_factory(registry_with(adapter))
        await insert(
            session_factory,
            make_queue_item(recipient="low@example.com", priority=1, created_at=NOW - timedelta(minutes=9)),
            make_queue_item(recipient="second@example.com", priority=8, created_at=NOW - timedelta(minutes=1)),
            make_queue_item(recipient="first@example.com", priority=8, created_at=NOW - timedelta(minutes=2)),
            make_queue_item(recipient="top@example.com", priority=9, created_at=NOW),
        )

        await processor.process_queue()

        recipients = [call.args[0].recipient for call in adapter.send.await_args_list]
        assert recipients == [
            "top@example.com",
            "first@example.com",
            "second@example.com",
            "low@example.com",
        ]

    async def test_terminal_items_are_never_dispatched(self, session_factory, processor_factory):
        adapter = make_adapter("email")
        processor = processor_factory(registry_with(adapter))
        await insert(
            session_factory,
            make_queue_item(status="failed", current_attempts=3),
            make_queue_item(status="cancelled"),
            make_queue_item(status="sent", current_attempts=1),
        )

        report = await processor.process_queue()

        assert report.selected == 0
        adapter.send.assert_not_awaited()

    async def test_batch_size_limits_cycle(self, session_factory, processor_factory, queue_settings):
        adapter = make_adapter("email", *[DeliveryResult.success_result(None)] * 3)
        settings = queue_settings.model_copy(update={"batch_size": 2})
        processor = processor_factory(registry_with(adapter), settings=settings)
        await insert(session_factory, *[make_queue_item() for _ in range(3)])

        report = await processor.process_queue()

        assert report.selected == 2
        assert report.sent == 2

    async def test_missing_adapter_is_a_delivery_failure(self, session_factory, processor_factory):
        processor = processor_factory(ChannelRegistry())
        (item,) = await insert(session_factory, make_queue_item(channel="webhook"))

        report = await processor.process_queue()

        assert report.retried == 1
        stored = await reload(session_factory, NotificationQueueItem, item.id)
        assert "No adapter registered" in stored.last_error
        (entry,) = await logs_for(session_factory, item.id)
        assert entry.provider == "webhook"

    async def test_adapter_exception_is_a_delivery_failure(
        self, session_factory, processor_factory
    ):
        adapter = make_adapter("email", RuntimeError("socket closed"))
        processor = processor_factory(registry_with(adapter))
        (item,) = await insert(session_factory, make_queue_item())

        report = await processor.process_queue()

        assert report.errors == []
        assert report.retried == 1
        stored = await reload(session_factory, NotificationQueueItem, item.id)
        assert stored.last_error == "RuntimeError: socket closed"

    async def test_each_item_is_committed_independently(
        self, session_factory, processor_factory
    ):
        adapter = make_adapter(
            "email",
            DeliveryResult.success_result("ok-1"),
            DeliveryResult.failure_result("bad"),
        )
        processor = processor_factory(registry_with(adapter))
        first, second = await insert(
            session_factory,
            make_queue_item(priority=9),
            make_queue_item(priority=1),
        )

        report = await processor.process_queue()

        assert (report.sent, report.retried) == (1, 1)
        assert (await reload(session_factory, NotificationQueueItem, first.id)).status == "sent"
        assert (await reload(session_factory, NotificationQueueItem, second.id)).status == "pending"


@pytest.mark.unit
class TestCycleControl:
    async def test_overlapping_cycle_is_skipped(self, processor_factory):
        processor = processor_factory()

        async with processor._lock:
            report = await processor.process_queue()

        assert report.skipped is True
        assert report.selected == 0

    async def test_infrastructure_error_is_reported_and_lock_released(
        self, session_factory, processor_factory
    ):
        queue_repository = NotificationQueueRepository()
        queue_repository.select_due = AsyncMock(side_effect=RuntimeError("database is locked"))
        processor = processor_factory(queue_repository=queue_repository)

        report = await processor.process_queue()

        assert report.errors == ["RuntimeError: database is locked"]
        assert processor.busy is False

    async def test_start_schedules_jobs_and_stop_shuts_down(self, processor_factory):
        processor = processor_factory()

        await processor.start()
        try:
            assert processor.running is True
            assert processor._scheduler.get_job(QueueProcessor.JOB_ID) is not None
            assert processor._scheduler.get_job(QueueProcessor.INITIAL_JOB_ID) is not None
        finally:
            await processor.stop()

        assert processor.running is False

    async def test_stop_without_start_is_noop(self, processor_factory):
        processor = processor_factory()

        await processor.stop()

        assert processor.running is False
