"""Notification queue commands.

Example:
    signal-notify queue process
    signal-notify queue list --status failed --limit 20
    signal-notify queue retry 0190a1b2-... --max-retries 5
    signal-notify queue stats
"""

import sys
import uuid

import click
import httpx

from signal_notify.cli.utils import coro, error, header, info, success, table, warning
from signal_notify.core.exceptions import AppException
from signal_notify.core.settings import get_channel_settings, get_queue_settings


@click.group(name="queue")
def queue() -> None:
    """Notification queue operations."""


@queue.command()
@coro
async def process() -> None:
    """Run one processing cycle now and print the report."""
    from signal_notify.features.notifications.channels import default_registry
    from signal_notify.features.notifications.processor import QueueProcessor
    from signal_notify.infra.database import AsyncSessionLocal, close_database

    queue_settings = get_queue_settings()
    channel_settings = get_channel_settings()

    try:
        async with httpx.AsyncClient(timeout=channel_settings.http_timeout_seconds) as client:
            registry = default_registry(
                channel_settings,
                demo_mode=queue_settings.demo_mode,
                client=client,
            )
            processor = QueueProcessor(AsyncSessionLocal, registry, queue_settings)
            report = await processor.process_queue()
    finally:
        await close_database()

    header(f"Cycle {report.cycle_id}")
    table(
        ["selected", "claimed", "sent", "retried", "failed", "duration_ms"],
        [[report.selected, report.claimed, report.sent, report.retried, report.failed, report.duration_ms]],
    )
    for message in report.errors:
        error(message)
    if report.errors:
        sys.exit(1)


@queue.command()
@coro
async def stats() -> None:
    """Show counts by status and channel and recent failures."""
    from signal_notify.features.notifications.service import get_notification_service
    from signal_notify.infra.database import close_database, get_async_session

    try:
        async with get_async_session() as session:
            result = await get_notification_service().stats(session)
    finally:
        await close_database()

    header("Queue items")
    table(["status", "channel", "count"], [[r.status, r.channel, r.count] for r in result.counts])
    info(f"Delivery attempts logged: {result.total_processed}")

    if result.recent_failures:
        header("Recent failures")
        table(
            ["id", "channel", "attempts", "error"],
            [
                [item.id, item.channel, f"{item.current_attempts}/{item.max_retries}", item.last_error]
                for item in result.recent_failures
            ],
        )


@queue.command(name="list")
@click.option("--limit", default=50, type=click.IntRange(1, 500), help="Maximum rows")
@click.option(
    "--status",
    default=None,
    type=click.Choice(["pending", "processing", "sent", "delivered", "failed", "cancelled"]),
)
@click.option(
    "--channel",
    default=None,
    type=click.Choice(["email", "sms", "push", "chat", "webhook"]),
)
@coro
async def list_items(limit: int, status: str | None, channel: str | None) -> None:
    """List queue items, newest first."""
    from signal_notify.features.notifications.service import get_notification_service
    from signal_notify.infra.database import close_database, get_async_session

    try:
        async with get_async_session() as session:
            items = await get_notification_service().list_for_admin(
                session, limit=limit, status=status, channel=channel
            )
    finally:
        await close_database()

    if not items:
        warning("No queue items found")
        return

    table(
        ["id", "channel", "recipient", "status", "priority", "attempts", "next_retry_at"],
        [
            [
                item.id,
                item.channel,
                item.recipient,
                item.status,
                item.priority,
                f"{item.current_attempts}/{item.max_retries}",
                item.next_retry_at,
            ]
            for item in items
        ],
    )


@queue.command()
@click.argument("queue_id", type=click.UUID)
@click.option(
    "--max-retries",
    default=None,
    type=click.IntRange(1, 100),
    help="New attempt ceiling (raised to allow at least one more attempt)",
)
@coro
async def retry(queue_id: uuid.UUID, max_retries: int | None) -> None:
    """Return a failed notification to the queue."""
    from signal_notify.features.notifications.service import get_notification_service
    from signal_notify.infra.database import close_database, get_async_session

    try:
        async with get_async_session() as session:
            item = await get_notification_service().retry(
                session, queue_id, max_retries=max_retries
            )
            await session.commit()
    except AppException as e:
        error(e.detail)
        sys.exit(1)
    finally:
        await close_database()

    success(
        f"Notification {item.id} requeued "
        f"(attempts {item.current_attempts}/{item.max_retries})"
    )


@queue.command()
@click.argument("alert_id", type=click.UUID)
@click.argument("user_id")
@coro
async def signal(alert_id: uuid.UUID, user_id: str) -> None:
    """Queue notifications for a stored signal on USER_ID's enabled channels."""
    from signal_notify.features.notifications.service import get_notification_service
    from signal_notify.infra.database import close_database, get_async_session

    try:
        async with get_async_session() as session:
            items = await get_notification_service().queue_signal_notification(
                session, alert_id, user_id
            )
            await session.commit()
    finally:
        await close_database()

    if not items:
        warning("Nothing queued (unknown signal, no preferences or no enabled channel)")
        return
    success(f"Queued {len(items)} notification(s): {', '.join(i.channel for i in items)}")
