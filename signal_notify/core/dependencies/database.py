"""Database dependencies for FastAPI route handlers.

Two session getters share one session factory:

1. `get_db_session()` (this module) - FastAPI dependency, one session per
   request, closed when the request completes.
2. `get_async_session()` (infra.database) - context manager for the queue
   processor, CLI commands and scripts.

Usage:
    from signal_notify.core.dependencies.database import get_db_session

    @router.get("/admin/queue")
    async def list_queue(session: AsyncSession = Depends(get_db_session)):
        ...
"""

from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession

from signal_notify.infra.database import get_async_session


async def get_db_session() -> AsyncGenerator[AsyncSession]:
    """FastAPI dependency for database session.

    Yields:
        Database session that is automatically closed after request.
    """
    async with get_async_session() as session:
        yield session
