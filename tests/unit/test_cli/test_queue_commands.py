"""Tests for the ``queue`` CLI command group.

The service and the session are replaced so no command touches a database.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import UTC, datetime
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

from click.testing import CliRunner
import pytest

from signal_notify.cli.main import cli
from signal_notify.core.exceptions import ConflictException
from signal_notify.features.notifications.processor import ProcessingReport
from signal_notify.features.notifications.repository import QueueStats, StatusChannelCount

QUEUE_ID = "0190a1b2-c3d4-7e5f-8a6b-7c8d9e0f1a2b"


@pytest.fixture
def session() -> MagicMock:
    fake = MagicMock()
    fake.commit = AsyncMock()
    return fake


@pytest.fixture
def service(monkeypatch, session) -> AsyncMock:
    """Patch the service getter and the session helpers used by the commands."""
    import signal_notify.features.notifications.service as service_module
    import signal_notify.infra.database as database_module

    fake_service = AsyncMock()

    @asynccontextmanager
    async def fake_session():
        yield session

    monkeypatch.setattr(service_module, "get_notification_service", lambda: fake_service)
    monkeypatch.setattr(database_module, "get_async_session", fake_session)
    monkeypatch.setattr(database_module, "close_database", AsyncMock())
    return fake_service


def queue_row(**overrides) -> SimpleNamespace:
    data = {
        "id": QUEUE_ID,
        "channel": "sms",
        "recipient": "+15551234567",
        "status": "failed",
        "priority": 9,
        "current_attempts": 3,
        "max_retries": 3,
        "next_retry_at": None,
        "last_error": "Twilio API error (400)",
    }
    data.update(overrides)
    return SimpleNamespace(**data)


@pytest.mark.unit
class TestQueueCommands:
    def test_retry(self, service, session):
        service.retry.return_value = queue_row(status="pending", max_retries=5)

        result = CliRunner().invoke(cli, ["queue", "retry", QUEUE_ID, "--max-retries", "5"])

        assert result.exit_code == 0, result.output
        assert "requeued (attempts 3/5)" in result.output
        kwargs = service.retry.await_args.kwargs
        assert kwargs["max_retries"] == 5
        session.commit.assert_awaited_once()

    def test_retry_conflict_exits_non_zero(self, service, session):
        service.retry.side_effect = ConflictException(
            detail="Only failed notifications can be retried (status is 'sent')",
            type="invalid-queue-state",
        )

        result = CliRunner().invoke(cli, ["queue", "retry", QUEUE_ID])

        assert result.exit_code == 1
        assert "Only failed notifications can be retried" in result.output
        session.commit.assert_not_awaited()

    def test_retry_rejects_bad_uuid(self, service):
        result = CliRunner().invoke(cli, ["queue", "retry", "not-a-uuid"])

        assert result.exit_code == 2
        service.retry.assert_not_awaited()

    def test_list(self, service):
        service.list_for_admin.return_value = [queue_row()]

        result = CliRunner().invoke(cli, ["queue", "list", "--status", "failed", "--limit", "5"])

        assert result.exit_code == 0, result.output
        assert "+15551234567" in result.output
        assert "3/3" in result.output
        assert service.list_for_admin.await_args.kwargs == {
            "limit": 5,
            "status": "failed",
            "channel": None,
        }

    def test_list_empty(self, service):
        service.list_for_admin.return_value = []

        result = CliRunner().invoke(cli, ["queue", "list"])

        assert result.exit_code == 0
        assert "No queue items found" in result.output

    def test_stats(self, service):
        service.stats.return_value = QueueStats(
            counts=[StatusChannelCount("failed", "sms", 1), StatusChannelCount("sent", "email", 4)],
            total_processed=7,
            recent_failures=[queue_row()],
        )

        result = CliRunner().invoke(cli, ["queue", "stats"])

        assert result.exit_code == 0, result.output
        assert "Delivery attempts logged: 7" in result.output
        assert "Recent failures" in result.output
        assert "Twilio API error (400)" in result.output

    def test_signal(self, service, session):
        service.queue_signal_notification.return_value = [
            queue_row(channel="email"),
            queue_row(channel="sms"),
        ]

        result = CliRunner().invoke(cli, ["queue", "signal", QUEUE_ID, "user-123"])

        assert result.exit_code == 0, result.output
        assert "Queued 2 notification(s): email, sms" in result.output
        session.commit.assert_awaited_once()

    def test_signal_nothing_queued(self, service):
        service.queue_signal_notification.return_value = []

        result = CliRunner().invoke(cli, ["queue", "signal", QUEUE_ID, "user-123"])

        assert result.exit_code == 0
        assert "Nothing queued" in result.output

    def test_process_prints_report(self, monkeypatch, service):
        import signal_notify.features.notifications.processor as processor_module

        report = ProcessingReport(
            cycle_id="abc123",
            started_at=datetime(2026, 1, 5, tzinfo=UTC),
            selected=2,
            claimed=2,
            sent=1,
            retried=1,
        )
        fake_processor = MagicMock()
        fake_processor.process_queue = AsyncMock(return_value=report)
        monkeypatch.setattr(processor_module, "QueueProcessor", MagicMock(return_value=fake_processor))

        result = CliRunner().invoke(cli, ["queue", "process"])

        assert result.exit_code == 0, result.output
        assert "Cycle abc123" in result.output

    def test_process_with_errors_exits_non_zero(self, monkeypatch, service):
        import signal_notify.features.notifications.processor as processor_module

        report = ProcessingReport(
            cycle_id="abc123",
            started_at=datetime(2026, 1, 5, tzinfo=UTC),
            errors=["OperationalError: database is locked"],
        )
        fake_processor = MagicMock()
        fake_processor.process_queue = AsyncMock(return_value=report)
        monkeypatch.setattr(processor_module, "QueueProcessor", MagicMock(return_value=fake_processor))

        result = CliRunner().invoke(cli, ["queue", "process"])

        assert result.exit_code == 1
        assert "database is locked" in result.output


def test_version():
    result = CliRunner().invoke(cli, ["--version"])

    assert result.exit_code == 0
    assert "signal-notify, version 1.0.0" in result.output
