"""Trading signals feature package (read side)."""

from .models import AlertSignal
from .repository import AlertSignalRepository, get_alert_signal_repository

__all__ = [
    "AlertSignal",
    "AlertSignalRepository",
    "get_alert_signal_repository",
]
