"""Email channel adapter using the SendGrid v3 API."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from signal_notify.features.notifications.channels.base import (
    DeliveryResult,
    HttpChannelAdapter,
)

if TYPE_CHECKING:
    from signal_notify.features.notifications.channels.base import DeliveryRequest


class EmailAdapter(HttpChannelAdapter):
    """Send email through SendGrid ``mail/send``.

    SendGrid answers 202 Accepted and returns the message id in the
    ``X-Message-Id`` header. Provider-side dynamic templates are used when
    the request carries a ``template_id``.
    """

    channel = "email"
    provider = "sendgrid"

    SEND_ENDPOINT = "/v3/mail/send"

    def is_configured(self) -> bool:
        return self._settings.email_configured

    def validate_recipient(self, recipient: str) -> str | None:
        if "@" not in recipient:
            return f"Invalid email address: {recipient!r}"
        return None

    def _build_payload(self, request: DeliveryRequest) -> dict[str, Any]:
        personalization: dict[str, Any] = {"to": [{"email": request.recipient}]}
        sender: dict[str, str] = {"email": self._settings.email_from}
        if self._settings.email_from_name:
            sender["name"] = self._settings.email_from_name

        payload: dict[str, Any] = {
            "personalizations": [personalization],
            "from": sender,
            "subject": request.subject or "Notification",
        }

        if request.template_id:
            payload["template_id"] = request.template_id
            personalization["dynamic_template_data"] = request.template_variables
        else:
            content = [{"type": "text/plain", "value": request.message}]
            if request.message_html:
                content.append({"type": "text/html", "value": request.message_html})
            payload["content"] = content

        if request.queue_id is not None:
            payload["custom_args"] = {"queue_id": str(request.queue_id)}
        return payload

    async def _deliver(self, request: DeliveryRequest) -> DeliveryResult:
        api_key = self._settings.sendgrid_api_key
        assert api_key is not None

        response = await self._post(
            f"{self._settings.sendgrid_base_url}{self.SEND_ENDPOINT}",
            json=self._build_payload(request),
            headers={"Authorization": f"Bearer {api_key.get_secret_value()}"},
        )

        if response.is_success:
            return DeliveryResult.success_result(
                message_id=response.headers.get("X-Message-Id"),
                response={"status_code": response.status_code},
            )

        return DeliveryResult.failure_result(
            f"SendGrid API error ({response.status_code}): {self._error_body(response)}",
            response={"status_code": response.status_code},
        )
