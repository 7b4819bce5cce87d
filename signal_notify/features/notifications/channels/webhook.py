"""Generic webhook channel adapter."""

from __future__ import annotations

import hashlib
import hmac
import json
import time
from typing import TYPE_CHECKING

from signal_notify.features.notifications.channels.base import (
    DeliveryResult,
    HttpChannelAdapter,
)

if TYPE_CHECKING:
    from signal_notify.features.notifications.channels.base import DeliveryRequest


def sign_payload(secret: str, timestamp: str, payload: str) -> str:
    """HMAC-SHA256 over ``"{timestamp}.{payload}"``, hex encoded."""
    message = f"{timestamp}.{payload}"
    return hmac.new(secret.encode("utf-8"), message.encode("utf-8"), hashlib.sha256).hexdigest()


class WebhookAdapter(HttpChannelAdapter):
    """POST a JSON document to the recipient URL.

    The recipient URL is the only configuration, so the channel is always
    configured. When a signing secret is set, ``X-Signature`` and
    ``X-Signature-Timestamp`` headers are added.
    """

    channel = "webhook"
    provider = "webhook"

    def is_configured(self) -> bool:
        return True

    def validate_recipient(self, recipient: str) -> str | None:
        if not recipient.startswith(("http://", "https://")):
            return f"Invalid webhook URL: {recipient!r}"
        return None

    async def _deliver(self, request: DeliveryRequest) -> DeliveryResult:
        payload = json.dumps(
            {
                "queue_id": str(request.queue_id) if request.queue_id else None,
                "user_id": request.user_id,
                "subject": request.subject,
                "message": request.message,
                "metadata": request.metadata,
            },
            separators=(",", ":"),
            default=str,
        )
        headers = {"Content-Type": "application/json", "User-Agent": "signal-notify/1.0"}

        secret = self._settings.webhook_signing_secret
        if secret is not None:
            timestamp = time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime())
            headers["X-Signature-Timestamp"] = timestamp
            headers["X-Signature"] = sign_payload(secret.get_secret_value(), timestamp, payload)

        response = await self._post(request.recipient, content=payload, headers=headers)

        if response.is_success:
            return DeliveryResult.success_result(
                message_id=response.headers.get("X-Request-Id"),
                response={"status_code": response.status_code},
            )
        return DeliveryResult.failure_result(
            f"HTTP {response.status_code}",
            response={"status_code": response.status_code, "body": response.text[:500]},
        )
