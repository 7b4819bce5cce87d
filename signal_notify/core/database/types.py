"""Custom SQLAlchemy column types.

Types included:
- UTCDateTime: timezone-aware datetimes normalized to UTC on every dialect

``to_utc`` is the conversion UTCDateTime applies when binding and reading.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, TypeDecorator

if TYPE_CHECKING:
    from sqlalchemy.engine import Dialect


def to_utc(value: datetime) -> datetime:
    """Convert ``value`` to UTC, taking naive values to already be UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


class UTCDateTime(TypeDecorator[datetime]):
    """Datetime column that always binds and returns aware UTC values.

    SQLite stores ``DateTime(timezone=True)`` without its offset, so an aware
    value is converted to UTC before binding and the stored value is read
    back as UTC. Naive input is taken to already be UTC.

    Example:
        scheduled_for: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        return None if value is None else to_utc(value)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        return None if value is None else to_utc(value)
