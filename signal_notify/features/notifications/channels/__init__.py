"""Multi-channel notification delivery.

Provides channel adapters for:
- Email: SendGrid
- SMS: Twilio
- Chat: Telegram bot
- Push: Firebase Cloud Messaging
- Webhook: signed JSON POST

Each adapter implements the ChannelAdapter protocol and reports provider
errors through DeliveryResult instead of raising.
"""

from __future__ import annotations

from signal_notify.features.notifications.channels.base import (
    ChannelAdapter,
    DeliveryRequest,
    DeliveryResult,
    HttpChannelAdapter,
)
from signal_notify.features.notifications.channels.chat import ChatAdapter
from signal_notify.features.notifications.channels.email import EmailAdapter
from signal_notify.features.notifications.channels.push import PushAdapter
from signal_notify.features.notifications.channels.registry import (
    ChannelRegistry,
    default_registry,
)
from signal_notify.features.notifications.channels.sms import SmsAdapter
from signal_notify.features.notifications.channels.webhook import WebhookAdapter

__all__ = [
    "ChannelAdapter",
    "ChannelRegistry",
    "ChatAdapter",
    "DeliveryRequest",
    "DeliveryResult",
    "EmailAdapter",
    "HttpChannelAdapter",
    "PushAdapter",
    "SmsAdapter",
    "WebhookAdapter",
    "default_registry",
]
