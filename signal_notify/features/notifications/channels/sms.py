"""SMS channel adapter using the Twilio Messages API."""

from __future__ import annotations

from typing import TYPE_CHECKING

from signal_notify.features.notifications.channels.base import (
    DeliveryResult,
    HttpChannelAdapter,
)

if TYPE_CHECKING:
    from signal_notify.features.notifications.channels.base import DeliveryRequest

SMS_MAX_LENGTH = 160


def truncate_sms(body: str, limit: int = SMS_MAX_LENGTH) -> str:
    """Cut ``body`` to a single SMS segment, marking the cut with ``...``."""
    if len(body) <= limit:
        return body
    return body[: limit - 3] + "..."


class SmsAdapter(HttpChannelAdapter):
    """Send SMS through Twilio with account SID / auth token basic auth.

    Recipients must be in E.164 form (leading ``+``). Bodies are truncated
    to one 160-character segment.
    """

    channel = "sms"
    provider = "twilio"

    def is_configured(self) -> bool:
        return self._settings.sms_configured

    def validate_recipient(self, recipient: str) -> str | None:
        if not recipient.startswith("+"):
            return "Phone number must include country code (e.g., +1234567890)"
        return None

    async def _deliver(self, request: DeliveryRequest) -> DeliveryResult:
        sid = self._settings.twilio_account_sid
        token = self._settings.twilio_auth_token
        assert sid is not None and token is not None

        response = await self._post(
            f"{self._settings.twilio_base_url}/2010-04-01/Accounts/{sid}/Messages.json",
            data={
                "To": request.recipient,
                "From": self._settings.twilio_phone_number,
                "Body": truncate_sms(request.message),
            },
            auth=(sid, token.get_secret_value()),
        )

        if response.is_success:
            body = response.json()
            return DeliveryResult.success_result(
                message_id=body.get("sid"),
                response={"status_code": response.status_code, "status": body.get("status")},
            )

        return DeliveryResult.failure_result(
            f"Twilio API error ({response.status_code}): {self._error_body(response)}",
            response={"status_code": response.status_code},
        )
