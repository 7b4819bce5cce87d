"""Pydantic schemas for the notifications feature."""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

CHANNEL_PATTERN = r"^(email|sms|push|chat|webhook)$"
STATUS_PATTERN = r"^(pending|processing|sent|delivered|failed|cancelled)$"


# ============================================================================
# Queue Item Schemas
# ============================================================================


class NotificationCreate(BaseModel):
    """Payload for enqueueing a notification."""

    user_id: str = Field(..., min_length=1, max_length=255, description="Recipient user identifier")
    channel: str = Field(..., pattern=CHANNEL_PATTERN, description="Delivery channel")
    recipient: str = Field(
        ...,
        min_length=1,
        max_length=512,
        description="Email address, phone number, chat id, push token or webhook URL",
    )
    message: str = Field(..., min_length=1, description="Plain text body")
    alert_id: UUID | None = Field(default=None, description="Triggering signal, if any")
    subject: str | None = Field(default=None, max_length=500)
    message_html: str | None = Field(default=None)
    template_id: str | None = Field(default=None, max_length=100)
    template_variables: dict[str, Any] | None = Field(default=None)
    metadata: dict[str, Any] | None = Field(default=None)
    priority: int | None = Field(
        default=None,
        ge=0,
        le=100,
        description="Higher is more urgent; defaults to the queue default",
    )
    scheduled_for: datetime | None = Field(
        default=None,
        description="Earliest dispatch time (defaults to now)",
    )
    max_retries: int | None = Field(default=None, ge=1, le=20)


class NotificationQueueItemResponse(BaseModel):
    """Representation of a queue item returned from the API."""

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: UUID
    user_id: str
    alert_id: UUID | None
    channel: str
    recipient: str
    subject: str | None
    message: str
    message_html: str | None
    template_id: str | None
    template_variables: dict[str, Any] | None
    metadata: dict[str, Any] | None = Field(default=None, validation_alias="payload_metadata")
    priority: int
    scheduled_for: datetime
    status: str
    max_retries: int
    current_attempts: int
    last_attempt_at: datetime | None
    next_retry_at: datetime | None
    sent_at: datetime | None
    delivered_at: datetime | None
    last_error: str | None
    provider_message_id: str | None
    created_at: datetime
    updated_at: datetime


class NotificationLogResponse(BaseModel):
    """One delivery attempt."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    queue_id: UUID
    channel: str
    recipient: str
    status: str
    provider: str
    provider_message_id: str | None
    provider_response: dict[str, Any] | None
    processing_time_ms: int
    delivery_time_ms: int | None
    error_code: str | None
    error_message: str | None
    sent_at: datetime | None
    delivered_at: datetime | None
    created_at: datetime


class NotificationDetailResponse(NotificationQueueItemResponse):
    """Queue item together with its delivery log."""

    logs: list[NotificationLogResponse] = Field(default_factory=list)


class RetryRequest(BaseModel):
    """Optional override of the attempt ceiling for a manual retry."""

    max_retries: int | None = Field(default=None, ge=1, le=100)


class SignalFanoutResponse(BaseModel):
    """Result of queueing a signal for one user."""

    alert_id: UUID
    user_id: str
    count: int
    queued: list[NotificationQueueItemResponse]


# ============================================================================
# Admin Schemas
# ============================================================================


class StatusChannelCountResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    status: str
    channel: str
    count: int


class QueueStatsResponse(BaseModel):
    """Aggregate queue statistics."""

    counts: list[StatusChannelCountResponse]
    by_status: dict[str, int]
    total_processed: int = Field(description="Delivery attempts logged")
    recent_failures: list[NotificationQueueItemResponse]


class ProcessingReportResponse(BaseModel):
    """Outcome of one processing cycle."""

    model_config = ConfigDict(from_attributes=True)

    cycle_id: str
    started_at: datetime
    skipped: bool
    selected: int
    claimed: int
    sent: int
    retried: int
    failed: int
    duration_ms: int
    errors: list[str]
