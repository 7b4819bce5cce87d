"""SQLAlchemy models for the notifications feature."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import Any
from uuid import UUID

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from signal_notify.core.database import Base, UUIDv7PKMixin, UUIDv7TimestampedBase, utcnow
from signal_notify.core.database.types import UTCDateTime


class NotificationStatus(StrEnum):
    """Lifecycle states of a queued notification."""

    PENDING = "pending"
    PROCESSING = "processing"
    SENT = "sent"
    DELIVERED = "delivered"
    FAILED = "failed"
    CANCELLED = "cancelled"


TERMINAL_STATUSES = frozenset({NotificationStatus.FAILED, NotificationStatus.CANCELLED})


class NotificationChannel(StrEnum):
    """Delivery channels."""

    EMAIL = "email"
    SMS = "sms"
    PUSH = "push"
    CHAT = "chat"
    WEBHOOK = "webhook"


# Provider name recorded in the delivery log for each channel
CHANNEL_PROVIDERS: dict[str, str] = {
    NotificationChannel.EMAIL: "sendgrid",
    NotificationChannel.SMS: "twilio",
    NotificationChannel.CHAT: "telegram_bot",
    NotificationChannel.PUSH: "firebase",
    NotificationChannel.WEBHOOK: "webhook",
}


def provider_for(channel: str) -> str:
    """Provider name for ``channel``; ``unknown`` for unregistered channels."""
    return CHANNEL_PROVIDERS.get(channel, "unknown")


_JSON = JSONB().with_variant(JSON(), "sqlite")


class NotificationQueueItem(UUIDv7TimestampedBase):
    """A notification request waiting for, or having completed, delivery.

    Status transitions:
        pending -> processing            (claimed by the queue processor)
        processing -> sent               (adapter reported success)
        processing -> pending            (failure, retry scheduled via next_retry_at)
        processing -> failed             (failure, attempts exhausted)
        failed -> pending                (manual retry)

    ``failed`` and ``cancelled`` are never picked up by the processor.

    Indexes:
        - (status, scheduled_for, next_retry_at) for due-item selection
        - (priority, created_at) for dispatch ordering
    """

    __tablename__ = "notification_queue"

    # Routing
    user_id: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        index=True,
        comment="Recipient user identifier",
    )
    alert_id: Mapped[UUID | None] = mapped_column(
        nullable=True,
        index=True,
        comment="Signal that triggered this notification, if any",
    )
    channel: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        comment="Delivery channel: email, sms, push, chat, webhook",
    )
    recipient: Mapped[str] = mapped_column(
        String(512),
        nullable=False,
        comment="Email address, phone number, chat id, push token or URL",
    )

    # Payload
    subject: Mapped[str | None] = mapped_column(
        String(500),
        nullable=True,
        comment="Subject or title",
    )
    message: Mapped[str] = mapped_column(
        Text(),
        nullable=False,
        comment="Plain text body",
    )
    message_html: Mapped[str | None] = mapped_column(
        Text(),
        nullable=True,
        comment="HTML body (email)",
    )
    template_id: Mapped[str | None] = mapped_column(
        String(100),
        nullable=True,
        comment="Provider template identifier",
    )
    template_variables: Mapped[dict[str, Any] | None] = mapped_column(
        _JSON,
        nullable=True,
        comment="Variables for provider-side templates",
    )
    payload_metadata: Mapped[dict[str, Any] | None] = mapped_column(
        "metadata",
        _JSON,
        nullable=True,
        comment="Free-form metadata forwarded to webhook and push payloads",
    )

    # Scheduling
    priority: Mapped[int] = mapped_column(
        Integer(),
        default=5,
        nullable=False,
        comment="Higher values are dispatched first",
    )
    scheduled_for: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        default=utcnow,
        server_default=func.now(),
        nullable=False,
        comment="Earliest dispatch time",
    )

    # Lifecycle
    status: Mapped[str] = mapped_column(
        String(20),
        default=NotificationStatus.PENDING.value,
        nullable=False,
        comment="pending, processing, sent, delivered, failed, cancelled",
    )
    max_retries: Mapped[int] = mapped_column(
        Integer(),
        default=3,
        nullable=False,
        comment="Attempt ceiling",
    )
    current_attempts: Mapped[int] = mapped_column(
        Integer(),
        default=0,
        nullable=False,
        comment="Delivery attempts made so far",
    )
    last_attempt_at: Mapped[datetime | None] = mapped_column(
        UTCDateTime(),
        nullable=True,
    )
    next_retry_at: Mapped[datetime | None] = mapped_column(
        UTCDateTime(),
        nullable=True,
        comment="Backoff gate; set only on pending items after a failed attempt",
    )
    sent_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    delivered_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    last_error: Mapped[str | None] = mapped_column(Text(), nullable=True)
    provider_message_id: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
        comment="Message id returned by the provider",
    )

    __table_args__ = (
        Index("idx_notification_queue_due", "status", "scheduled_for", "next_retry_at"),
        Index("idx_notification_queue_order", "priority", "created_at"),
        CheckConstraint(
            "current_attempts >= 0 AND current_attempts <= max_retries",
            name="attempts_within_ceiling",
        ),
        CheckConstraint("max_retries >= 1", name="max_retries_positive"),
    )

    @property
    def is_terminal(self) -> bool:
        """Whether the processor will never select this item again."""
        return self.status in TERMINAL_STATUSES

    def __repr__(self) -> str:
        return (
            f"<NotificationQueueItem(id={self.id}, channel={self.channel}, "
            f"status={self.status}, attempts={self.current_attempts}/{self.max_retries})>"
        )


class NotificationLog(Base, UUIDv7PKMixin):
    """Append-only record of one delivery attempt.

    Exactly one row is written per processed attempt; rows are never updated.
    """

    __tablename__ = "notification_logs"

    queue_id: Mapped[UUID] = mapped_column(
        ForeignKey("notification_queue.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    channel: Mapped[str] = mapped_column(String(20), nullable=False)
    recipient: Mapped[str] = mapped_column(String(512), nullable=False)
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        comment="Attempt outcome: sent or failed",
    )
    provider: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        comment="sendgrid, twilio, telegram_bot, firebase, webhook or unknown",
    )
    provider_message_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    provider_response: Mapped[dict[str, Any] | None] = mapped_column(_JSON, nullable=True)
    processing_time_ms: Mapped[int] = mapped_column(
        Integer(),
        nullable=False,
        comment="Wall time of the whole attempt",
    )
    delivery_time_ms: Mapped[int | None] = mapped_column(
        Integer(),
        nullable=True,
        comment="Provider call latency reported by the adapter",
    )
    error_code: Mapped[str | None] = mapped_column(String(50), nullable=True)
    error_message: Mapped[str | None] = mapped_column(Text(), nullable=True)
    sent_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    delivered_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        default=utcnow,
        server_default=func.now(),
        nullable=False,
    )

    __table_args__ = (Index("idx_notification_logs_status_created", "status", "created_at"),)


class UserNotificationPreference(UUIDv7TimestampedBase):
    """Per-user signal alert opt-ins and channel addresses.

    A channel receives signal alerts only when its flag is set and its
    address is present.
    """

    __tablename__ = "user_notification_preferences"

    user_id: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        unique=True,
        comment="User identifier",
    )

    email_signal_alerts: Mapped[bool] = mapped_column(Boolean(), default=True, nullable=False)
    sms_signal_alerts: Mapped[bool] = mapped_column(Boolean(), default=False, nullable=False)
    chat_signal_alerts: Mapped[bool] = mapped_column(Boolean(), default=False, nullable=False)
    push_signal_alerts: Mapped[bool] = mapped_column(Boolean(), default=True, nullable=False)
    webhook_signal_alerts: Mapped[bool] = mapped_column(Boolean(), default=False, nullable=False)

    email_address: Mapped[str | None] = mapped_column(String(255), nullable=True)
    phone_number: Mapped[str | None] = mapped_column(String(32), nullable=True)
    chat_id: Mapped[str | None] = mapped_column(
        String(64),
        nullable=True,
        comment="Telegram chat id",
    )
    push_token: Mapped[str | None] = mapped_column(String(512), nullable=True)
    webhook_url: Mapped[str | None] = mapped_column(String(1024), nullable=True)
