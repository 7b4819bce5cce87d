"""Jinja2 template rendering for signal notifications."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from jinja2 import StrictUndefined, TemplateError, select_autoescape
from jinja2.sandbox import SandboxedEnvironment

from signal_notify.infra.logging import get_lazy_logger

if TYPE_CHECKING:
    from signal_notify.features.signals.models import AlertSignal

BUY_COLOR = "#10B981"
SELL_COLOR = "#EF4444"

_EMAIL_HTML = (
    '<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">'
    '<h2 style="color: {{ action_color }};">🚨 {{ action }} Signal: {{ symbol }}</h2>'
    '<div style="background: #f8f9fa; padding: 20px; border-radius: 8px; margin: 20px 0;">'
    "<p><strong>Symbol:</strong> {{ symbol }}</p>"
    '<p><strong>Action:</strong> <span style="color: {{ action_color }}; font-weight: bold;">'
    "{{ action }}</span></p>"
    "<p><strong>Price:</strong> ${{ price }}</p>"
    "<p><strong>Timeframe:</strong> {{ timeframe }}</p>"
    "<p><strong>Notes:</strong> {{ notes }}</p>"
    "<p><strong>Time:</strong> {{ timestamp }}</p>"
    "</div>"
    '<p style="color: #6b7280; font-size: 12px;">'
    "This is an automated trading signal from {{ brand }}."
    "</p>"
    "</div>"
)

# (template, autoescape) per channel and part
SIGNAL_TEMPLATES: dict[str, dict[str, tuple[str, bool]]] = {
    "email": {
        "subject": ("🚨 {{ action }} Signal: {{ symbol }}", False),
        "body": (
            "Trading Signal Alert\n\n"
            "Symbol: {{ symbol }}\n"
            "Action: {{ action }}\n"
            "Price: ${{ price }}\n"
            "Timeframe: {{ timeframe }}\n"
            "Notes: {{ notes }}\n\n"
            "Time: {{ timestamp }}",
            False,
        ),
        "body_html": (_EMAIL_HTML, True),
    },
    "sms": {
        "body": ("🚨 {{ action }} {{ symbol }} at ${{ price }} ({{ timeframe }}) - {{ brand }}", False),
    },
    "chat": {
        "body": (
            "🚨 <b>{{ action }}</b> Signal\n\n"
            "📊 <b>{{ symbol }}</b>\n"
            "💰 Price: ${{ price }}\n"
            "⏰ Timeframe: {{ timeframe }}\n"
            "📝 Notes: {{ notes }}\n\n"
            "🕐 {{ timestamp }}",
            True,
        ),
    },
    "push": {
        "subject": ("🚨 {{ action }} {{ symbol }}", False),
        "body": ("{{ action }} signal at ${{ price }} ({{ timeframe }})", False),
    },
    "webhook": {
        "subject": ("{{ action }} Signal: {{ symbol }}", False),
        "body": ("{{ action }} {{ symbol }} at {{ price }} ({{ timeframe }})", False),
    },
}


class TemplateRenderError(Exception):
    """Raised when template rendering fails."""

    def __init__(self, message: str, channel: str | None = None) -> None:
        super().__init__(message)
        self.channel = channel


@dataclass(frozen=True)
class RenderedContent:
    """Rendered notification parts for one channel."""

    body: str
    subject: str | None = None
    body_html: str | None = None


def format_price(price: Decimal | float | str) -> str:
    """Price without trailing zeros or exponent (``50000``, ``0.00001234``)."""
    value = Decimal(str(price)).normalize()
    return f"{value:f}"


class SignalTemplateRenderer:
    """Jinja2 renderer for the built-in signal templates.

    Uses SandboxedEnvironment with StrictUndefined so a missing variable is
    an error rather than an empty string. HTML parts (email HTML, Telegram
    messages) autoescape signal fields.
    """

    def __init__(self) -> None:
        self._html_env = SandboxedEnvironment(
            autoescape=select_autoescape(default_for_string=True),
            undefined=StrictUndefined,
        )
        self._text_env = SandboxedEnvironment(autoescape=False, undefined=StrictUndefined)
        self._lazy = get_lazy_logger(__name__)

    @staticmethod
    def build_context(signal: AlertSignal, brand: str) -> dict[str, Any]:
        """Template variables for ``signal``."""
        action = signal.action.upper()
        return {
            "symbol": signal.symbol,
            "action": action,
            "action_color": BUY_COLOR if signal.action.lower() == "buy" else SELL_COLOR,
            "price": format_price(signal.price),
            "timeframe": signal.timeframe,
            "notes": signal.notes or "N/A",
            "timestamp": signal.signal_timestamp.strftime("%Y-%m-%d %H:%M:%S UTC"),
            "brand": brand,
        }

    def render(self, channel: str, context: dict[str, Any]) -> RenderedContent:
        """Render every part defined for ``channel``.

        Raises:
            TemplateRenderError: Unknown channel or rendering failure
        """
        parts = SIGNAL_TEMPLATES.get(channel)
        if parts is None:
            raise TemplateRenderError(f"No signal template for channel {channel!r}", channel)

        rendered: dict[str, str] = {}
        try:
            for part, (source, autoescape) in parts.items():
                env = self._html_env if autoescape else self._text_env
                rendered[part] = env.from_string(source).render(**context)
        except TemplateError as exc:
            raise TemplateRenderError(f"Failed to render {channel} template: {exc}", channel) from exc

        self._lazy.debug(lambda: f"Rendered signal template for channel {channel}")
        return RenderedContent(
            body=rendered["body"],
            subject=rendered.get("subject"),
            body_html=rendered.get("body_html"),
        )


# Singleton instance
_renderer: SignalTemplateRenderer | None = None


def get_template_renderer() -> SignalTemplateRenderer:
    """Get or create the singleton SignalTemplateRenderer instance."""
    global _renderer
    if _renderer is None:
        _renderer = SignalTemplateRenderer()
    return _renderer
