"""Test utilities and factories.

Usage:
    from tests.utils import FakeClock, make_queue_item, make_signal

    item = make_queue_item(channel="sms", recipient="+15551234567", priority=9)
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from decimal import Decimal
from typing import TYPE_CHECKING, Any
from unittest.mock import AsyncMock, MagicMock

from signal_notify.core.database import generate_uuid7
from signal_notify.features.notifications.channels.base import DeliveryResult
from signal_notify.features.notifications.models import (
    NotificationQueueItem,
    UserNotificationPreference,
)
from signal_notify.features.signals.models import AlertSignal

if TYPE_CHECKING:
    from uuid import UUID

    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

NOW = datetime(2026, 1, 5, 12, 0, 0, tzinfo=UTC)


class FakeClock:
    """Controllable replacement for ``utcnow``."""

    def __init__(self, start: datetime = NOW) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **delta: float) -> datetime:
        self.now += timedelta(**delta)
        return self.now


# ============================================================================
# Model Factories
# ============================================================================


def make_queue_item(**overrides: Any) -> NotificationQueueItem:
    """Unsaved pending queue item with realistic defaults."""
    data: dict[str, Any] = {
        "user_id": "user-123",
        "channel": "email",
        "recipient": "trader@example.com",
        "subject": "BUY Signal: BTCUSD",
        "message": "BUY BTCUSD at $50000 (1H)",
        "priority": 5,
        "max_retries": 3,
        "scheduled_for": NOW,
    }
    data.update(overrides)
    return NotificationQueueItem(**data)


def make_signal(**overrides: Any) -> AlertSignal:
    data: dict[str, Any] = {
        "id": generate_uuid7(),
        "symbol": "BTCUSD",
        "action": "buy",
        "price": Decimal("50000.00000000"),
        "timeframe": "1H",
        "notes": "Breakout above resistance",
        "signal_timestamp": NOW,
        "source": "strategy-engine",
    }
    data.update(overrides)
    return AlertSignal(**data)


def make_preferences(**overrides: Any) -> UserNotificationPreference:
    """Preferences with every channel off; enable what the test needs."""
    data: dict[str, Any] = {
        "user_id": "user-123",
        "email_signal_alerts": False,
        "sms_signal_alerts": False,
        "chat_signal_alerts": False,
        "push_signal_alerts": False,
        "webhook_signal_alerts": False,
    }
    data.update(overrides)
    return UserNotificationPreference(**data)


def make_adapter(channel: str, *results: DeliveryResult | Exception) -> AsyncMock:
    """AsyncMock channel adapter returning (or raising) ``results`` in order."""
    adapter = AsyncMock()
    adapter.channel = channel
    adapter.provider = "test"
    adapter.is_configured = MagicMock(return_value=True)
    adapter.send.side_effect = list(results)
    return adapter


# ============================================================================
# Database Helpers
# ============================================================================


async def insert(
    session_factory: async_sessionmaker[AsyncSession],
    *rows: Any,
) -> list[Any]:
    """Insert and commit ``rows`` in their own session."""
    async with session_factory() as session:
        session.add_all(rows)
        await session.commit()
    return list(rows)


async def reload(
    session_factory: async_sessionmaker[AsyncSession],
    model: type,
    pk: UUID,
) -> Any:
    """Fetch a fresh copy of a row outside any test session cache."""
    async with session_factory() as session:
        return await session.get(model, pk)
