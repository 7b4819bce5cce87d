"""Fan-out of one trading signal into per-channel notification requests."""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import TYPE_CHECKING, Protocol

from signal_notify.features.notifications.models import NotificationChannel, NotificationQueueItem
from signal_notify.features.notifications.templates import get_template_renderer

if TYPE_CHECKING:
    from uuid import UUID

    from sqlalchemy.ext.asyncio import AsyncSession

    from signal_notify.features.notifications.models import UserNotificationPreference
    from signal_notify.features.notifications.repository import NotificationQueueRepository
    from signal_notify.features.notifications.templates import SignalTemplateRenderer
    from signal_notify.features.signals.models import AlertSignal

logger = logging.getLogger(__name__)


class SignalSource(Protocol):
    """Read access to trading signals."""

    async def get_signal(self, session: AsyncSession, alert_id: UUID) -> AlertSignal | None: ...


class PreferenceSource(Protocol):
    """Read access to user signal alert preferences."""

    async def get_for_user(
        self,
        session: AsyncSession,
        user_id: str,
    ) -> UserNotificationPreference | None: ...


@dataclass(frozen=True)
class ChannelRule:
    """Preference flag, address field and priority for one channel."""

    channel: NotificationChannel
    flag: str
    address: str
    priority: int


CHANNEL_RULES: tuple[ChannelRule, ...] = (
    ChannelRule(NotificationChannel.EMAIL, "email_signal_alerts", "email_address", 8),
    ChannelRule(NotificationChannel.SMS, "sms_signal_alerts", "phone_number", 9),
    ChannelRule(NotificationChannel.CHAT, "chat_signal_alerts", "chat_id", 8),
    ChannelRule(NotificationChannel.PUSH, "push_signal_alerts", "push_token", 7),
    ChannelRule(NotificationChannel.WEBHOOK, "webhook_signal_alerts", "webhook_url", 6),
)


class SignalNotificationExpander:
    """Turn a signal plus a user's preferences into queued notifications.

    One request is enqueued per enabled channel with a non-empty address.
    A missing signal or missing preferences yields no requests.
    """

    def __init__(
        self,
        signal_source: SignalSource,
        preference_source: PreferenceSource,
        store: NotificationQueueRepository,
        *,
        brand_name: str = "CryptoStrategy Pro",
        max_retries: int = 3,
        renderer: SignalTemplateRenderer | None = None,
    ) -> None:
        self._signals = signal_source
        self._preferences = preference_source
        self._store = store
        self._brand_name = brand_name
        self._max_retries = max_retries
        self._renderer = renderer or get_template_renderer()

    def build_requests(
        self,
        signal: AlertSignal,
        preferences: UserNotificationPreference,
    ) -> list[NotificationQueueItem]:
        """Unsaved queue items for every enabled channel with an address."""
        context = self._renderer.build_context(signal, self._brand_name)
        metadata = {
            "alert_id": str(signal.id),
            "symbol": signal.symbol,
            "action": signal.action,
            "price": context["price"],
            "timeframe": signal.timeframe,
            "signal_timestamp": signal.signal_timestamp.isoformat(),
        }

        items: list[NotificationQueueItem] = []
        for rule in CHANNEL_RULES:
            if not getattr(preferences, rule.flag):
                continue
            recipient = (getattr(preferences, rule.address) or "").strip()
            if not recipient:
                continue

            content = self._renderer.render(rule.channel, context)
            items.append(
                NotificationQueueItem(
                    user_id=preferences.user_id,
                    alert_id=signal.id,
                    channel=rule.channel.value,
                    recipient=recipient,
                    subject=content.subject,
                    message=content.body,
                    message_html=content.body_html,
                    payload_metadata=(
                        metadata
                        if rule.channel in (NotificationChannel.PUSH, NotificationChannel.WEBHOOK)
                        else None
                    ),
                    priority=rule.priority,
                    max_retries=self._max_retries,
                )
            )
        return items

    async def queue_signal_notification(
        self,
        session: AsyncSession,
        alert_id: UUID,
        user_id: str,
    ) -> list[NotificationQueueItem]:
        """Enqueue signal notifications for ``user_id``. Does not commit."""
        signal = await self._signals.get_signal(session, alert_id)
        if signal is None:
            logger.warning(
                "Signal not found, nothing queued",
                extra={"alert_id": str(alert_id), "user_id": user_id},
            )
            return []

        preferences = await self._preferences.get_for_user(session, user_id)
        if preferences is None:
            logger.info(
                "No notification preferences for user, nothing queued",
                extra={"alert_id": str(alert_id), "user_id": user_id},
            )
            return []

        queued = [
            await self._store.enqueue(session, item)
            for item in self.build_requests(signal, preferences)
        ]

        logger.info(
            "Signal notifications queued",
            extra={
                "alert_id": str(alert_id),
                "user_id": user_id,
                "count": len(queued),
                "channels": [item.channel for item in queued],
            },
        )
        return queued
