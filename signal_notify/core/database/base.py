"""Base database model classes with composable mixins.

This module provides the foundation for SQLAlchemy models with:
- Time-sortable UUID v7 primary keys
- Timestamp tracking (created_at, updated_at)
- Consistent constraint naming

Examples:
    class NotificationLog(Base, UUIDv7PKMixin):
        __tablename__ = "notification_logs"
        channel: Mapped[str] = mapped_column(String(20))

    class NotificationQueueItem(UUIDv7TimestampedBase):
        __tablename__ = "notification_queue"
        recipient: Mapped[str] = mapped_column(String(512))
"""

from __future__ import annotations

import os
import time
import uuid
from datetime import UTC, datetime

from sqlalchemy import MetaData
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.sql import func

from signal_notify.core.database.types import UTCDateTime

# Predictable constraint names for schema management
NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


class Base(DeclarativeBase):
    """Declarative base sharing one MetaData with NAMING_CONVENTION.

    Every model sets ``__tablename__`` explicitly.
    """

    metadata = MetaData(naming_convention=NAMING_CONVENTION)


def utcnow() -> datetime:
    """Timezone-aware current time in UTC."""
    return datetime.now(UTC)


def generate_uuid7() -> uuid.UUID:
    """Generate a UUID v7 (48-bit millisecond timestamp + random bits)."""
    timestamp_ms = int(time.time() * 1000)
    random_bytes = os.urandom(10)

    uuid_bytes = bytearray(16)
    uuid_bytes[0:6] = timestamp_ms.to_bytes(6, byteorder="big")
    uuid_bytes[6] = (random_bytes[0] & 0x0F) | 0x70  # Version 7
    uuid_bytes[7] = random_bytes[1]
    uuid_bytes[8] = (random_bytes[2] & 0x3F) | 0x80  # Variant
    uuid_bytes[9:16] = random_bytes[3:10]

    return uuid.UUID(bytes=bytes(uuid_bytes))


class UUIDv7PKMixin:
    """UUID v7 primary key (time-sortable).

    Later ids sort after earlier ones, which keeps B-tree inserts local
    and makes ids usable as a rough creation order in admin listings.
    """

    __allow_unmapped__ = True

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True,
        default=generate_uuid7,
        comment="UUID v7 primary key (time-sortable)",
    )


class TimestampMixin:
    """Timestamp tracking for create and update operations.

    Uses both Python-side defaults (for test environments) and database
    server defaults (for direct SQL inserts).
    """

    __allow_unmapped__ = True

    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        default=utcnow,
        server_default=func.now(),
        nullable=False,
        comment="Timestamp of record creation",
    )
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        default=utcnow,
        server_default=func.now(),
        onupdate=utcnow,
        nullable=False,
        comment="Timestamp of last update",
    )


class UUIDv7TimestampedBase(Base, UUIDv7PKMixin, TimestampMixin):
    """Convenience base with UUID v7 PK and timestamps."""

    __abstract__ = True


__all__ = [
    "NAMING_CONVENTION",
    "Base",
    "TimestampMixin",
    "UUIDv7PKMixin",
    "UUIDv7TimestampedBase",
    "generate_uuid7",
    "utcnow",
]
