"""Channel name -> adapter registry."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import httpx

    from signal_notify.core.settings import ChannelSettings
    from signal_notify.features.notifications.channels.base import ChannelAdapter

logger = logging.getLogger(__name__)


class ChannelRegistry:
    """Maps channel names to adapters.

    The queue processor resolves adapters here by the item's ``channel``;
    adding a channel means registering one more adapter.

    Example:
        registry = ChannelRegistry()
        registry.register(SmsAdapter(settings))
        adapter = registry.get("sms")
    """

    def __init__(self) -> None:
        self._adapters: dict[str, ChannelAdapter] = {}

    def register(self, adapter: ChannelAdapter, *, channel: str | None = None) -> None:
        """Register ``adapter`` under ``channel`` (defaults to ``adapter.channel``)."""
        name = channel or adapter.channel
        if name in self._adapters:
            logger.warning("Replacing channel adapter", extra={"channel": name})
        self._adapters[name] = adapter

    def get(self, channel: str) -> ChannelAdapter | None:
        return self._adapters.get(channel)

    def channels(self) -> list[str]:
        return sorted(self._adapters)

    def __contains__(self, channel: object) -> bool:
        return channel in self._adapters

    def __len__(self) -> int:
        return len(self._adapters)


def default_registry(
    settings: ChannelSettings,
    *,
    demo_mode: bool = True,
    client: httpx.AsyncClient | None = None,
) -> ChannelRegistry:
    """Registry with the built-in email, sms, chat, push and webhook adapters."""
    from signal_notify.features.notifications.channels.chat import ChatAdapter
    from signal_notify.features.notifications.channels.email import EmailAdapter
    from signal_notify.features.notifications.channels.push import PushAdapter
    from signal_notify.features.notifications.channels.sms import SmsAdapter
    from signal_notify.features.notifications.channels.webhook import WebhookAdapter

    registry = ChannelRegistry()
    for adapter_cls in (EmailAdapter, SmsAdapter, ChatAdapter, PushAdapter, WebhookAdapter):
        registry.register(adapter_cls(settings, demo_mode=demo_mode, client=client))

    logger.info(
        "Channel registry built",
        extra={
            "channels": registry.channels(),
            "configured": [
                name for name in registry.channels() if registry.get(name).is_configured()
            ],
            "demo_mode": demo_mode,
        },
    )
    return registry
