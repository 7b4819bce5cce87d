"""Minimal generic repository for SQLAlchemy models.

Provides basic lookups and inserts with explicit session passing.
For complex queries, use the session directly - this is a convenience, not a cage.

Example:
    from signal_notify.core.database import BaseRepository
    from signal_notify.features.signals.models import AlertSignal

    class AlertSignalRepository(BaseRepository[AlertSignal]):
        async def latest_for_symbol(self, session, symbol): ...

    repo = BaseRepository(AlertSignal)
    signal = await repo.get(session, alert_id)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from sqlalchemy import select

from signal_notify.core.database.exceptions import NotFoundError
from signal_notify.infra.logging import get_lazy_logger

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession
    from sqlalchemy.orm import InstrumentedAttribute


class BaseRepository[T]:
    """Minimal generic repository.

    Provides:
        - get(session, id) -> T | None
        - get_or_raise(session, id) -> T (raises NotFoundError)
        - get_by(session, attr, value) -> T | None
        - create(session, instance) -> T

    Session is always explicit - no hidden state. Transactions are owned by
    the caller; repositories only flush.
    """

    __slots__ = ("model", "_logger", "_lazy")

    def __init__(self, model: type[T]) -> None:
        self.model = model
        # Standard logger for INFO/WARNING/ERROR
        self._logger = logging.getLogger(f"repository.{model.__name__}")
        # Lazy logger for DEBUG (zero overhead when DEBUG disabled)
        self._lazy = get_lazy_logger(f"repository.{model.__name__}")

    async def get(self, session: AsyncSession, id: Any) -> T | None:  # noqa: A002
        """Get entity by primary key, or None."""
        instance = await session.get(self.model, id)

        self._lazy.debug(
            lambda: f"db.get: {self.model.__name__}({id}) -> {'found' if instance else 'not found'}"
        )
        return instance

    async def get_or_raise(self, session: AsyncSession, id: Any) -> T:  # noqa: A002
        """Get entity by primary key or raise NotFoundError.

        Raises:
            NotFoundError: If entity doesn't exist
        """
        instance = await self.get(session, id)
        if instance is None:
            self._logger.info(
                "Entity not found",
                extra={
                    "entity": self.model.__name__,
                    "id": str(id),
                    "operation": "db.get_or_raise",
                },
            )
            raise NotFoundError(self.model.__name__, {"id": id})
        return instance

    async def get_by(
        self,
        session: AsyncSession,
        attr: InstrumentedAttribute[Any],
        value: Any,
    ) -> T | None:
        """Get entity by arbitrary attribute.

        Example:
            prefs = await repo.get_by(session, UserNotificationPreference.user_id, "u-1")
        """
        stmt = select(self.model).where(attr == value)
        result = await session.execute(stmt)
        instance = result.scalars().first()

        self._lazy.debug(
            lambda: f"db.get_by: {self.model.__name__}.{attr.key}={value!r} -> {'found' if instance else 'not found'}"
        )
        return instance

    async def create(self, session: AsyncSession, instance: T) -> T:
        """Persist a new entity.

        Adds to session, flushes to get generated values (like id),
        and refreshes to ensure instance is up-to-date.
        """
        session.add(instance)
        await session.flush()
        await session.refresh(instance)

        entity_id = getattr(instance, "id", None)
        self._lazy.debug(lambda: f"db.create: {self.model.__name__}(id={entity_id})")
        return instance


__all__ = ["BaseRepository"]
