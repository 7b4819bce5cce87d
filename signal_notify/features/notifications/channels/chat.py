"""Chat channel adapter using the Telegram Bot API."""

from __future__ import annotations

from typing import TYPE_CHECKING

from signal_notify.features.notifications.channels.base import (
    DeliveryResult,
    HttpChannelAdapter,
)

if TYPE_CHECKING:
    from signal_notify.features.notifications.channels.base import DeliveryRequest


class ChatAdapter(HttpChannelAdapter):
    """Send bot messages through Telegram ``sendMessage`` with HTML parse mode.

    The recipient is the Telegram chat id.
    """

    channel = "chat"
    provider = "telegram_bot"

    def is_configured(self) -> bool:
        return self._settings.chat_configured

    async def _deliver(self, request: DeliveryRequest) -> DeliveryResult:
        token = self._settings.telegram_bot_token
        assert token is not None

        response = await self._post(
            f"{self._settings.telegram_base_url}/bot{token.get_secret_value()}/sendMessage",
            json={
                "chat_id": request.recipient,
                "text": request.message,
                "parse_mode": "HTML",
                "disable_web_page_preview": True,
            },
        )

        body = response.json() if response.content else {}
        if response.is_success and body.get("ok"):
            message_id = body.get("result", {}).get("message_id")
            return DeliveryResult.success_result(
                message_id=str(message_id) if message_id is not None else None,
                response={"status_code": response.status_code},
            )

        return DeliveryResult.failure_result(
            f"Telegram API error ({response.status_code}): {self._error_body(response)}",
            response={"status_code": response.status_code},
        )
