"""Repository for trading signals."""

from __future__ import annotations

from typing import TYPE_CHECKING

from signal_notify.core.database.repository import BaseRepository
from signal_notify.features.signals.models import AlertSignal

if TYPE_CHECKING:
    from uuid import UUID

    from sqlalchemy.ext.asyncio import AsyncSession


class AlertSignalRepository(BaseRepository[AlertSignal]):
    """Lookups of alert signals by id."""

    def __init__(self) -> None:
        super().__init__(AlertSignal)

    async def get_signal(self, session: AsyncSession, alert_id: UUID) -> AlertSignal | None:
        return await self.get(session, alert_id)


_alert_signal_repository: AlertSignalRepository | None = None


def get_alert_signal_repository() -> AlertSignalRepository:
    """Get the AlertSignalRepository singleton."""
    global _alert_signal_repository
    if _alert_signal_repository is None:
        _alert_signal_repository = AlertSignalRepository()
    return _alert_signal_repository
