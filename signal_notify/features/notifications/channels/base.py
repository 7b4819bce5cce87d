"""Base protocol and types for channel adapters."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
import logging
import time
from typing import TYPE_CHECKING, Any, ClassVar, Protocol, runtime_checkable

import httpx

from signal_notify.infra.logging import get_lazy_logger

if TYPE_CHECKING:
    from uuid import UUID

    from signal_notify.core.settings import ChannelSettings
    from signal_notify.features.notifications.models import NotificationQueueItem


@dataclass(frozen=True)
class DeliveryRequest:
    """Everything an adapter needs to send one message.

    Decouples adapters from the ORM row; built with ``from_item``.
    """

    queue_id: UUID | None
    user_id: str
    channel: str
    recipient: str
    message: str
    subject: str | None = None
    message_html: str | None = None
    template_id: str | None = None
    template_variables: dict[str, Any] = field(default_factory=dict)
    metadata: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_item(cls, item: NotificationQueueItem) -> DeliveryRequest:
        return cls(
            queue_id=item.id,
            user_id=item.user_id,
            channel=item.channel,
            recipient=item.recipient,
            message=item.message,
            subject=item.subject,
            message_html=item.message_html,
            template_id=item.template_id,
            template_variables=dict(item.template_variables or {}),
            metadata=dict(item.payload_metadata or {}),
        )


@dataclass(frozen=True)
class DeliveryResult:
    """Result of a channel delivery attempt.

    Attributes:
        success: Whether the provider accepted the message
        message_id: Provider-assigned message id
        error: Error description if failed
        delivery_time_ms: Provider call latency in milliseconds
        response: Provider response details, stored in the delivery log
    """

    success: bool
    message_id: str | None = None
    error: str | None = None
    delivery_time_ms: int | None = None
    response: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.success and not self.error:
            object.__setattr__(self, "error", "Unknown error")

    @classmethod
    def success_result(
        cls,
        message_id: str | None,
        delivery_time_ms: int | None = None,
        response: dict[str, Any] | None = None,
    ) -> DeliveryResult:
        return cls(
            success=True,
            message_id=message_id,
            delivery_time_ms=delivery_time_ms,
            response=response or {},
        )

    @classmethod
    def failure_result(
        cls,
        error: str,
        delivery_time_ms: int | None = None,
        response: dict[str, Any] | None = None,
    ) -> DeliveryResult:
        return cls(
            success=False,
            error=error,
            delivery_time_ms=delivery_time_ms,
            response=response or {},
        )

    def as_log_payload(self) -> dict[str, Any]:
        """JSON-serializable form stored as ``provider_response``."""
        return {
            "success": self.success,
            "message_id": self.message_id,
            "error": self.error,
            "delivery_time_ms": self.delivery_time_ms,
            **({"response": self.response} if self.response else {}),
        }


@runtime_checkable
class ChannelAdapter(Protocol):
    """Protocol for channel-specific delivery adapters.

    Each channel (email, sms, chat, push, webhook) implements this protocol.
    Provider errors are reported through ``DeliveryResult``, not raised.
    """

    channel: str
    provider: str

    def is_configured(self) -> bool:
        """Whether provider credentials are present."""
        ...

    async def send(self, request: DeliveryRequest) -> DeliveryResult:
        """Send one message and report the outcome."""
        ...


class HttpChannelAdapter(ABC):
    """Shared behaviour for adapters that call a provider over HTTP.

    Handles:
    - Demo mode for unconfigured channels
    - Recipient validation hook
    - Latency measurement
    - httpx timeout and transport errors as failure results

    Subclasses implement ``_deliver`` and, optionally, ``validate_recipient``.
    """

    channel: ClassVar[str]
    provider: ClassVar[str]

    def __init__(
        self,
        settings: ChannelSettings,
        *,
        demo_mode: bool = True,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize adapter.

        Args:
            settings: Provider credentials and endpoints
            demo_mode: Report simulated success when credentials are missing
            client: Shared httpx client; a short-lived client is used per call if None
        """
        self._settings = settings
        self._demo_mode = demo_mode
        self._client = client
        self._logger = logging.getLogger(f"channels.{self.channel}")
        self._lazy = get_lazy_logger(f"channels.{self.channel}")

    @abstractmethod
    def is_configured(self) -> bool: ...

    @abstractmethod
    async def _deliver(self, request: DeliveryRequest) -> DeliveryResult: ...

    def validate_recipient(self, recipient: str) -> str | None:
        """Return an error message when ``recipient`` is unusable."""
        if not recipient:
            return "Recipient is empty"
        return None

    async def send(self, request: DeliveryRequest) -> DeliveryResult:
        if not self.is_configured():
            if self._demo_mode:
                return self._demo_result(request)
            return DeliveryResult.failure_result(f"{self.channel} channel not configured")

        rejected = self.validate_recipient(request.recipient)
        if rejected:
            return DeliveryResult.failure_result(rejected)

        start = time.perf_counter()
        try:
            result = await self._deliver(request)
        except httpx.TimeoutException:
            result = DeliveryResult.failure_result(
                f"{self.provider} request timed out after {self._settings.http_timeout_seconds}s"
            )
        except httpx.HTTPError as e:
            self._logger.warning(
                "Provider request error",
                extra={"provider": self.provider, "error": str(e)},
            )
            result = DeliveryResult.failure_result(f"{self.provider} HTTP error: {e}")

        elapsed_ms = int((time.perf_counter() - start) * 1000)
        return replace(result, delivery_time_ms=elapsed_ms)

    def _demo_result(self, request: DeliveryRequest) -> DeliveryResult:
        self._logger.info(
            "Demo mode: delivery simulated",
            extra={"channel": self.channel, "queue_id": str(request.queue_id)},
        )
        return DeliveryResult.success_result(
            message_id=f"{self.channel}_demo_{int(time.time() * 1000)}",
            delivery_time_ms=0,
            response={"demo": True},
        )

    async def _post(self, url: str, **kwargs: Any) -> httpx.Response:
        """POST through the shared client or a short-lived one."""
        timeout = kwargs.pop("timeout", self._settings.http_timeout_seconds)
        self._lazy.debug(lambda: f"channel.post: {self.provider} -> {url}")
        if self._client is not None:
            return await self._client.post(url, timeout=timeout, **kwargs)
        async with httpx.AsyncClient() as client:
            return await client.post(url, timeout=timeout, **kwargs)

    @staticmethod
    def _error_body(response: httpx.Response) -> str:
        """Best-effort provider error text."""
        try:
            body = response.json()
        except ValueError:
            return response.text[:500]
        if isinstance(body, dict):
            for key in ("message", "description", "error"):
                if body.get(key):
                    return str(body[key])
            if isinstance(body.get("errors"), list):
                return "; ".join(
                    str(e.get("message", e)) if isinstance(e, dict) else str(e)
                    for e in body["errors"]
                )
        return response.text[:500]
