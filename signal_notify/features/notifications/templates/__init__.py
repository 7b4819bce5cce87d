"""Template rendering for signal notifications.

Jinja2-based rendering of the built-in per-channel signal templates
(email subject, plain text and HTML; SMS; Telegram HTML; push; webhook).
"""

from __future__ import annotations

from signal_notify.features.notifications.templates.renderer import (
    RenderedContent,
    SignalTemplateRenderer,
    TemplateRenderError,
    get_template_renderer,
)

__all__ = [
    "RenderedContent",
    "SignalTemplateRenderer",
    "TemplateRenderError",
    "get_template_renderer",
]
