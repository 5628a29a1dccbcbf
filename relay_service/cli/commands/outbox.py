"""Outbox management commands.

This module provides CLI commands for operating the transactional outbox:
- process      - Run one poll cycle now
- stats        - Pending and dead-letter counts
- dead-letters - List rows that hit the enqueue attempt ceiling
- requeue      - Make dead letters claimable again
- cleanup      - Delete old processed rows
"""

from __future__ import annotations

import sys

import click

from relay_service.cli.utils import coro, error, header, info, success, warning
from relay_service.core.clock import utc_now
from relay_service.core.settings import get_outbox_settings


@click.group(name="outbox")
def outbox() -> None:
    """Transactional outbox management commands."""


@outbox.command(name="process")
@coro
async def process() -> None:
    """Claim pending outbox rows and enqueue them once."""
    header("Processing Outbox")

    from relay_service.infra.events.outbox.processor import get_outbox_processor
    from relay_service.infra.tasks.broker import start_taskiq, stop_taskiq

    try:
        await start_taskiq()
        try:
            enqueued = await get_outbox_processor().process_pending()
        finally:
            await stop_taskiq()
    except Exception as e:
        error(f"Failed to process outbox: {e}")
        sys.exit(1)

    if enqueued:
        success(f"Enqueued {enqueued} outbox messages")
    else:
        info("No outbox messages were enqueued")


@outbox.command(name="stats")
@coro
async def stats() -> None:
    """Show pending and dead-letter counts."""
    header("Outbox Statistics")

    from relay_service.infra.database.session import get_async_session
    from relay_service.infra.events.outbox.repository import OutboxRepository

    settings = get_outbox_settings()
    repo = OutboxRepository()

    try:
        async with get_async_session() as session:
            pending = await repo.count_pending(session)
            dead = await repo.count_dead_lettered(
                session, max_attempts=settings.max_enqueue_attempts
            )
    except Exception as e:
        error(f"Failed to read outbox statistics: {e}")
        sys.exit(1)

    click.echo(f"  Pending:       {pending}")
    click.echo(f"  Dead letters:  {dead}")
    if not settings.has_retry_ceiling:
        info("No enqueue attempt ceiling configured (OUTBOX_MAX_ENQUEUE_ATTEMPTS=0)")
    elif dead:
        warning(f"{dead} messages need attention, see 'relay-service outbox dead-letters'")


@outbox.command(name="dead-letters")
@click.option("--limit", type=int, default=50, show_default=True, help="Maximum rows to list")
@coro
async def dead_letters(limit: int) -> None:
    """List outbox rows that reached the enqueue attempt ceiling."""
    header("Outbox Dead Letters")

    from relay_service.infra.database.session import get_async_session
    from relay_service.infra.events.outbox.repository import OutboxRepository

    settings = get_outbox_settings()

    try:
        async with get_async_session() as session:
            rows = await OutboxRepository().list_dead_lettered(
                session,
                max_attempts=settings.max_enqueue_attempts,
                limit=limit,
            )
    except Exception as e:
        error(f"Failed to list dead letters: {e}")
        sys.exit(1)

    if not rows:
        success("No dead letters")
        return

    for row in rows:
        click.echo(
            f"{row.id}  {row.event_type:<30} retries={row.retry_count:<3} "
            f"created={row.created_at.isoformat()}"
        )
        if row.error:
            click.secho(f"    {row.error[:200]}", fg="red")

    click.echo()
    info(f"Showing {len(rows)} dead letters")


@outbox.command(name="requeue")
@click.option("--yes", is_flag=True, help="Skip the confirmation prompt")
@coro
async def requeue(yes: bool) -> None:
    """Reset the attempt counter of dead letters so they are claimed again."""
    header("Requeue Dead Letters")

    from relay_service.infra.database.session import get_async_session
    from relay_service.infra.events.outbox.repository import OutboxRepository

    settings = get_outbox_settings()
    if not settings.has_retry_ceiling:
        info("No enqueue attempt ceiling configured, nothing is dead-lettered")
        return

    if not yes and not click.confirm("Requeue all dead-lettered outbox messages?"):
        warning("Aborted")
        return

    try:
        async with get_async_session() as session:
            count = await OutboxRepository().requeue_dead_letters(
                session, max_attempts=settings.max_enqueue_attempts
            )
            await session.commit()
    except Exception as e:
        error(f"Failed to requeue dead letters: {e}")
        sys.exit(1)

    success(f"Requeued {count} outbox messages")


@outbox.command(name="cleanup")
@click.option(
    "--older-than-days",
    type=int,
    default=None,
    help=(
        "Delete rows processed more than this many days ago "
        "(default: OUTBOX_CLEANUP_OLDER_THAN_DAYS)"
    ),
)
@coro
async def cleanup(older_than_days: int | None) -> None:
    """Delete processed outbox rows."""
    header("Outbox Cleanup")

    from relay_service.infra.database.session import get_async_session
    from relay_service.infra.events.outbox.repository import OutboxRepository

    days = older_than_days
    if days is None:
        days = get_outbox_settings().cleanup_older_than_days

    try:
        async with get_async_session() as session:
            deleted = await OutboxRepository().cleanup_processed(
                session,
                now=utc_now(),
                older_than_days=days,
            )
            await session.commit()
    except Exception as e:
        error(f"Failed to clean up outbox: {e}")
        sys.exit(1)

    success(f"Deleted {deleted} processed outbox messages older than {days} days")
