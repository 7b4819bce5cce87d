"""Database session management for the async SQLAlchemy engine."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from signal_notify.core.settings import get_db_settings

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    from sqlalchemy.ext.asyncio import AsyncEngine

logger = logging.getLogger(__name__)

db_settings = get_db_settings()

engine: AsyncEngine = create_async_engine(
    db_settings.get_sqlalchemy_url(),
    **db_settings.sqlalchemy_engine_kwargs(),
)

AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
    autocommit=False,
)


@asynccontextmanager
async def get_async_session() -> AsyncGenerator[AsyncSession]:
    """Get async database session.

    Yields:
        Database session that is automatically closed.

    Example:
        async with get_async_session() as session:
            item = await repo.get(session, queue_id)
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()


async def create_tables(bind: AsyncEngine | None = None) -> None:
    """Create every mapped table that does not exist yet.

    Importing the feature models registers them on ``Base.metadata``.
    """
    from signal_notify.core.database import Base
    from signal_notify.features.notifications import models as _notification_models  # noqa: F401
    from signal_notify.features.signals import models as _signal_models  # noqa: F401

    target = bind or engine
    async with target.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables ensured", extra={"tables": sorted(Base.metadata.tables)})


async def init_database() -> None:
    """Verify the database is reachable and optionally create tables.

    Raises:
        sqlalchemy.exc.SQLAlchemyError: If the connection check fails.
    """
    url = engine.url.render_as_string(hide_password=True)
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        logger.error("Failed to connect to database", extra={"url": url, "error": str(e)})
        raise

    if db_settings.create_tables_on_startup:
        await create_tables()

    logger.info(
        "Database connection established successfully",
        extra={"url": url, "dialect": engine.dialect.name},
    )


async def close_database() -> None:
    """Dispose of the engine's connection pool.

    This should be called during application shutdown.
    """
    logger.info("Closing database connection")

    try:
        await engine.dispose()
        logger.info("Database connection closed successfully")
    except Exception as e:
        logger.exception("Error closing database connection", extra={"error": str(e)})


__all__ = [
    "AsyncSessionLocal",
    "close_database",
    "create_tables",
    "engine",
    "get_async_session",
    "init_database",
]
