"""Core database components.

Declarative base and mixins, the generic repository, and repository
exceptions.

Example:
    from signal_notify.core.database import BaseRepository, UUIDv7TimestampedBase
"""

from signal_notify.core.database.base import (
    NAMING_CONVENTION,
    Base,
    TimestampMixin,
    UUIDv7PKMixin,
    UUIDv7TimestampedBase,
    generate_uuid7,
    utcnow,
)
from signal_notify.core.database.exceptions import (
    InvalidStateError,
    NotFoundError,
    RepositoryError,
)
from signal_notify.core.database.repository import BaseRepository
from signal_notify.core.database.types import UTCDateTime

__all__ = [
    "NAMING_CONVENTION",
    "Base",
    "BaseRepository",
    "InvalidStateError",
    "NotFoundError",
    "RepositoryError",
    "TimestampMixin",
    "UUIDv7PKMixin",
    "UUIDv7TimestampedBase",
    "UTCDateTime",
    "generate_uuid7",
    "utcnow",
]
