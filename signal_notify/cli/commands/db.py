"""Database management commands.

Example:
    signal-notify db check
    signal-notify db create
"""

import sys

import click
from sqlalchemy import text

from signal_notify.cli.utils import coro, error, info, success
from signal_notify.core.settings import get_db_settings


@click.group(name="db")
def db() -> None:
    """Database management commands."""


@db.command()
@coro
async def check() -> None:
    """Verify database connectivity."""
    from signal_notify.infra.database import close_database, engine, get_async_session

    info(f"Connecting to: {engine.url.render_as_string(hide_password=True)}")
    try:
        async with get_async_session() as session:
            await session.execute(text("SELECT 1"))
        success(f"Database reachable ({engine.dialect.name})")
    except Exception as e:
        error(f"Database connection failed: {e}")
        sys.exit(1)
    finally:
        await close_database()


@db.command()
@coro
async def create() -> None:
    """Create the queue, log, preference and signal tables if missing."""
    from signal_notify.infra.database import close_database, create_tables

    settings = get_db_settings()
    info("Creating tables" + (" on PostgreSQL" if settings.is_postgres else " on SQLite"))
    try:
        await create_tables()
        success("Tables created")
    except Exception as e:
        error(f"Table creation failed: {e}")
        sys.exit(1)
    finally:
        await close_database()
