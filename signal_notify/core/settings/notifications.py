"""Notification queue and delivery channel settings.

Provides settings for:
- Queue polling cadence and batch size
- Retry ceiling and exponential backoff base
- Provider credentials for each delivery channel
"""

from __future__ import annotations

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class QueueSettings(BaseSettings):
    """Queue processor configuration.

    Environment variables use QUEUE_ prefix.
    Example: QUEUE_POLL_INTERVAL_SECONDS=30, QUEUE_DEMO_MODE=false
    """

    enabled: bool = Field(
        default=True,
        description="Start the background queue processor with the application.",
    )
    poll_interval_seconds: float = Field(
        default=30.0,
        gt=0,
        le=3600,
        description="Seconds between processing cycles.",
    )
    initial_delay_seconds: float = Field(
        default=1.0,
        ge=0,
        le=300,
        description="Delay before the first processing cycle after start.",
    )
    batch_size: int = Field(
        default=50,
        ge=1,
        le=1000,
        description="Maximum number of due items handled per cycle.",
    )
    default_max_retries: int = Field(
        default=3,
        ge=1,
        le=20,
        description="Attempt ceiling applied to enqueued items without an explicit value.",
    )
    default_priority: int = Field(
        default=5,
        description="Priority applied to enqueued items without an explicit value.",
    )
    backoff_base_seconds: float = Field(
        default=60.0,
        gt=0,
        description="Backoff unit; the wait after attempt n is 2**n times this value.",
    )
    misfire_grace_seconds: int = Field(
        default=60,
        ge=1,
        description="APScheduler misfire grace time for the polling job.",
    )
    demo_mode: bool = Field(
        default=True,
        description="Unconfigured channels report simulated success instead of failing.",
    )
    brand_name: str = Field(
        default="CryptoStrategy Pro",
        min_length=1,
        max_length=100,
        description="Brand shown in signal notification bodies.",
    )
    recent_failures_limit: int = Field(
        default=10,
        ge=1,
        le=100,
        description="Number of recent failures returned with queue stats.",
    )

    model_config = SettingsConfigDict(
        env_prefix="QUEUE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        frozen=True,
        extra="ignore",
        env_ignore_empty=True,
    )


class ChannelSettings(BaseSettings):
    """Provider credentials for delivery channels.

    Environment variables use CHANNEL_ prefix.
    Example: CHANNEL_TWILIO_ACCOUNT_SID=AC..., CHANNEL_TELEGRAM_BOT_TOKEN=123:abc

    A channel is considered configured when all of its credentials are set.
    """

    # Email (SendGrid)
    sendgrid_api_key: SecretStr | None = Field(default=None)
    sendgrid_base_url: str = Field(default="https://api.sendgrid.com")
    email_from: str = Field(default="alerts@signal-notify.local")
    email_from_name: str | None = Field(default=None)

    # SMS (Twilio)
    twilio_account_sid: str | None = Field(default=None)
    twilio_auth_token: SecretStr | None = Field(default=None)
    twilio_phone_number: str | None = Field(default=None)
    twilio_base_url: str = Field(default="https://api.twilio.com")

    # Chat (Telegram bot)
    telegram_bot_token: SecretStr | None = Field(default=None)
    telegram_base_url: str = Field(default="https://api.telegram.org")

    # Push (Firebase Cloud Messaging)
    fcm_server_key: SecretStr | None = Field(default=None)
    fcm_url: str = Field(default="https://fcm.googleapis.com/fcm/send")

    # Webhook
    webhook_signing_secret: SecretStr | None = Field(
        default=None,
        description="HMAC-SHA256 secret used to sign webhook bodies (X-Signature header).",
    )

    http_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        le=120,
        description="Per-request timeout for provider HTTP calls.",
    )

    model_config = SettingsConfigDict(
        env_prefix="CHANNEL_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        frozen=True,
        extra="ignore",
        env_ignore_empty=True,
    )

    @property
    def email_configured(self) -> bool:
        """Check if SendGrid credentials are present."""
        return self.sendgrid_api_key is not None

    @property
    def sms_configured(self) -> bool:
        """Check if Twilio credentials are present."""
        return bool(
            self.twilio_account_sid and self.twilio_auth_token and self.twilio_phone_number
        )

    @property
    def chat_configured(self) -> bool:
        """Check if the Telegram bot token is present."""
        return self.telegram_bot_token is not None

    @property
    def push_configured(self) -> bool:
        """Check if the FCM server key is present."""
        return self.fcm_server_key is not None
