"""APScheduler integration for the recurring outbox poll.

APScheduler decides WHEN the poller runs; the poller claims rows and hands
them to taskiq, which decides HOW they are executed.

Architecture:
    APScheduler (in-process) → OutboxProcessor → Taskiq kiq() → RabbitMQ → Taskiq Worker

Overlapping passes are harmless (the skip-locked claim keeps batches
disjoint) but ``max_instances=1`` keeps one pass per process anyway.
"""

from __future__ import annotations

import logging

from apscheduler.schedulers.asyncio import (
    AsyncIOScheduler,  # type: ignore[import-untyped]
)
from apscheduler.triggers.interval import (
    IntervalTrigger,  # type: ignore[import-untyped]
)

from relay_service.core.settings import get_outbox_settings

logger = logging.getLogger(__name__)

PROCESS_OUTBOX_JOB_ID = "process-outbox"

scheduler = AsyncIOScheduler(
    timezone="UTC",
    job_defaults={
        "coalesce": True,  # Combine multiple pending executions into one
        "max_instances": 1,  # Only one instance of each job at a time
        "misfire_grace_time": 60,  # Allow 60s delay before considering job missed
    },
)


async def _process_outbox() -> None:
    """Run one poller pass."""
    from relay_service.infra.events.outbox.processor import get_outbox_processor

    await get_outbox_processor().process_pending()


def setup_scheduled_jobs() -> None:
    """Register the recurring jobs with APScheduler.

    Call during startup AFTER the Taskiq broker is started.
    """
    outbox_settings = get_outbox_settings()

    scheduler.add_job(
        func=_process_outbox,
        trigger=IntervalTrigger(seconds=outbox_settings.poll_interval_seconds),
        id=PROCESS_OUTBOX_JOB_ID,
        name="Process pending outbox messages",
        replace_existing=True,
    )

    logger.info(
        "Scheduled outbox processing",
        extra={"interval_seconds": outbox_settings.poll_interval_seconds},
    )


async def start_scheduler() -> None:
    """Start the APScheduler.

    Call during application startup after setup_scheduled_jobs().
    """
    if not scheduler.running:
        logger.info("Starting APScheduler")
        scheduler.start()
        logger.info(f"APScheduler started with {len(scheduler.get_jobs())} jobs")
    else:
        logger.warning("APScheduler is already running")


async def stop_scheduler() -> None:
    """Stop the APScheduler gracefully.

    Call during application shutdown.
    """
    if scheduler.running:
        logger.info("Stopping APScheduler")
        scheduler.shutdown(wait=True)
        logger.info("APScheduler stopped")
    else:
        logger.debug("APScheduler is not running")


def get_job_status() -> list[dict]:
    """Get status of all scheduled jobs.

    Returns:
        List of job information dictionaries.
    """
    jobs = []
    for job in scheduler.get_jobs():
        # Jobs added before start() have no next_run_time yet
        next_run = getattr(job, "next_run_time", None)
        jobs.append(
            {
                "id": job.id,
                "name": job.name,
                "next_run_time": next_run.isoformat() if next_run else None,
                "trigger": str(job.trigger),
            }
        )
    return jobs


__all__ = [
    "PROCESS_OUTBOX_JOB_ID",
    "get_job_status",
    "scheduler",
    "setup_scheduled_jobs",
    "start_scheduler",
    "stop_scheduler",
]
