"""Pytest configuration and shared fixtures.

Organization:
    - Environment: settings that keep tests off external infrastructure
    - Database Fixtures: file-backed SQLite engine, session factory and session
    - Settings Fixtures: queue and channel settings built without .env
    - Queue Fixtures: fake clock and processor wiring
    - Application Fixtures: FastAPI app with overridden dependencies and client
"""

from __future__ import annotations

import os
from collections.abc import AsyncGenerator
from typing import TYPE_CHECKING

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from tests.utils import FakeClock

if TYPE_CHECKING:
    from pathlib import Path

    from fastapi import FastAPI
    from sqlalchemy.ext.asyncio import AsyncEngine

# Keep tests off PostgreSQL, provider APIs and the background scheduler
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("DB_ENABLED", "false")
os.environ.setdefault("DB_CREATE_TABLES_ON_STARTUP", "false")
os.environ.setdefault("QUEUE_ENABLED", "false")
os.environ.setdefault("APP_ENVIRONMENT", "test")
os.environ.setdefault("LOG_FILE_ENABLED", "false")


# ============================================================================
# Database Fixtures
# ============================================================================


@pytest.fixture
async def db_engine(tmp_path: Path) -> AsyncGenerator[AsyncEngine]:
    """Async engine on a SQLite file with every table created.

    A file (not ``:memory:``) so that the processor's own sessions and the
    test's session see the same data.
    """
    from signal_notify.core.database import Base
    from signal_notify.features.notifications import models as _notification_models  # noqa: F401
    from signal_notify.features.signals import models as _signal_models  # noqa: F401

    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'queue.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    try:
        yield engine
    finally:
        await engine.dispose()


@pytest.fixture
def session_factory(db_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory configured like ``AsyncSessionLocal``."""
    return async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest.fixture
async def db_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession]:
    """Session for direct repository calls; rolled back after the test."""
    async with session_factory() as session:
        try:
            yield session
        finally:
            await session.rollback()


# ============================================================================
# Settings Fixtures
# ============================================================================


@pytest.fixture
def queue_settings():
    from signal_notify.core.settings import QueueSettings

    return QueueSettings(_env_file=None, enabled=False, batch_size=50, backoff_base_seconds=60)


@pytest.fixture
def channel_settings():
    """Channel settings with no provider credentials."""
    from signal_notify.core.settings import ChannelSettings

    return ChannelSettings(_env_file=None)


# ============================================================================
# Queue Fixtures
# ============================================================================


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def processor_factory(session_factory, queue_settings, clock):
    """Build a QueueProcessor on the test database with the fake clock."""
    from signal_notify.features.notifications.channels import ChannelRegistry
    from signal_notify.features.notifications.processor import QueueProcessor

    def build(registry: ChannelRegistry | None = None, **kwargs):
        return QueueProcessor(
            session_factory,
            registry or ChannelRegistry(),
            kwargs.pop("settings", queue_settings),
            clock=clock,
            **kwargs,
        )

    return build


# ============================================================================
# Application Fixtures
# ============================================================================


@pytest.fixture
async def app(session_factory, channel_settings, queue_settings) -> AsyncGenerator[FastAPI]:
    """FastAPI application wired to the test database.

    The lifespan does not run under ASGITransport, so the queue processor
    is placed on ``app.state`` here.
    """
    from signal_notify.app.main import create_app
    from signal_notify.core.dependencies.database import get_db_session
    from signal_notify.features.notifications.channels import default_registry
    from signal_notify.features.notifications.processor import QueueProcessor

    application = create_app()

    async def override_get_db_session() -> AsyncGenerator[AsyncSession]:
        async with session_factory() as session:
            yield session

    application.dependency_overrides[get_db_session] = override_get_db_session
    application.state.queue_processor = QueueProcessor(
        session_factory,
        default_registry(channel_settings, demo_mode=True),
        queue_settings,
    )

    yield application

    application.dependency_overrides.clear()


@pytest.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient]:
    """Async HTTP client for the test application."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
