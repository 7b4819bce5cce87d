"""Push channel adapter using the FCM legacy HTTP endpoint."""

from __future__ import annotations

from typing import TYPE_CHECKING

from signal_notify.features.notifications.channels.base import (
    DeliveryResult,
    HttpChannelAdapter,
)

if TYPE_CHECKING:
    from signal_notify.features.notifications.channels.base import DeliveryRequest


class PushAdapter(HttpChannelAdapter):
    """Send push notifications to a device token through FCM.

    FCM answers 200 even for rejected tokens; per-message outcome is in
    ``results[0]``.
    """

    channel = "push"
    provider = "firebase"

    def is_configured(self) -> bool:
        return self._settings.push_configured

    async def _deliver(self, request: DeliveryRequest) -> DeliveryResult:
        key = self._settings.fcm_server_key
        assert key is not None

        response = await self._post(
            self._settings.fcm_url,
            json={
                "to": request.recipient,
                "priority": "high",
                "notification": {
                    "title": request.subject or "Notification",
                    "body": request.message,
                },
                "data": {k: str(v) for k, v in request.metadata.items()},
            },
            headers={"Authorization": f"key={key.get_secret_value()}"},
        )

        if not response.is_success:
            return DeliveryResult.failure_result(
                f"FCM error ({response.status_code}): {self._error_body(response)}",
                response={"status_code": response.status_code},
            )

        body = response.json()
        result = (body.get("results") or [{}])[0]
        if body.get("success") and result.get("message_id"):
            return DeliveryResult.success_result(
                message_id=result["message_id"],
                response={"multicast_id": body.get("multicast_id")},
            )
        return DeliveryResult.failure_result(
            f"FCM rejected message: {result.get('error', 'unknown error')}",
            response={"multicast_id": body.get("multicast_id")},
        )
