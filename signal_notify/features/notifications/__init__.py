"""Notification delivery queue for trading signals.

This feature provides a durable, prioritized queue that:
- Stores one row per (recipient, channel) message with a retry budget
- Dispatches due rows on a fixed interval through per-channel adapters
- Retries failures with exponential backoff until attempts run out
- Appends one delivery log row per attempt
- Fans a trading signal out to the channels a user enabled

Architecture:
    - Models: NotificationQueueItem, NotificationLog, UserNotificationPreference
    - Repository: the queue store and its state transitions
    - Channels: SendGrid email, Twilio SMS, Telegram chat, FCM push, signed webhook
    - Templates: Jinja2 rendering of the built-in signal templates
    - Processor: APScheduler-driven single-flight processing cycles
    - Expander: signal plus preferences into queue items

Example:
    ```python
    processor = QueueProcessor(AsyncSessionLocal, default_registry(channels), queue_settings)
    await processor.start()

    async with get_async_session() as session:
        await get_notification_service().queue_signal_notification(session, alert_id, "user-123")
        await session.commit()
    ```
"""

from signal_notify.features.notifications.expander import SignalNotificationExpander
from signal_notify.features.notifications.models import (
    NotificationChannel,
    NotificationLog,
    NotificationQueueItem,
    NotificationStatus,
    UserNotificationPreference,
)
from signal_notify.features.notifications.processor import (
    ProcessingReport,
    QueueProcessor,
    compute_next_retry_at,
)
from signal_notify.features.notifications.repository import (
    NotificationLogRepository,
    NotificationQueueRepository,
    QueueStats,
    UserNotificationPreferenceRepository,
    get_notification_log_repository,
    get_notification_queue_repository,
    get_preference_repository,
)
from signal_notify.features.notifications.service import (
    NotificationQueueService,
    get_notification_service,
)

__all__ = [
    "NotificationChannel",
    "NotificationLog",
    "NotificationLogRepository",
    "NotificationQueueItem",
    "NotificationQueueRepository",
    "NotificationQueueService",
    "NotificationStatus",
    "ProcessingReport",
    "QueueProcessor",
    "QueueStats",
    "SignalNotificationExpander",
    "UserNotificationPreference",
    "UserNotificationPreferenceRepository",
    "compute_next_retry_at",
    "get_notification_log_repository",
    "get_notification_queue_repository",
    "get_notification_service",
    "get_preference_repository",
]
