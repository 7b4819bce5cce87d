"""FastAPI dependencies for route handlers.

This module re-exports commonly used dependencies for cleaner imports and
acts as the composition root: features import dependencies from here, not
directly from infra.

Usage:
    from signal_notify.core.dependencies import DbSession

    @router.get("/admin/stats")
    async def stats(session: DbSession):
        ...
"""

from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from signal_notify.core.dependencies.database import get_db_session

DbSession = Annotated[AsyncSession, Depends(get_db_session)]

__all__ = [
    "DbSession",
    "get_db_session",
]
