"""Process lifespan management.

Startup Order:
1. Logging - always runs first
2. Database - connectivity check
3. Taskiq broker - needed before anything is enqueued
4. APScheduler - starts the recurring outbox poll (if enabled)

Shutdown Order: Reverse of startup (what starts first, shuts down last)
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from relay_service.core.settings import get_app_settings, get_task_settings
from relay_service.infra.logging.config import setup_logging

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

logger = logging.getLogger(__name__)

# Lazy imports to avoid creating the engine and broker at import time:
# - relay_service.infra.database.session
# - relay_service.infra.tasks.broker
# - relay_service.infra.tasks.scheduler


async def startup() -> None:
    """Start every service the relay needs, in dependency order."""
    setup_logging()
    app_settings = get_app_settings()
    task_settings = get_task_settings()

    logger.info(
        "Starting relay service",
        extra={"service": app_settings.service_name, "environment": app_settings.environment},
    )

    from relay_service.infra.database.session import init_database

    await init_database()

    from relay_service.infra.tasks.broker import start_taskiq

    await start_taskiq()

    if task_settings.scheduler_enabled:
        from relay_service.infra.tasks.scheduler import setup_scheduled_jobs, start_scheduler

        setup_scheduled_jobs()
        await start_scheduler()
    else:
        logger.info("Scheduler disabled, outbox is only processed on demand")

    logger.info("Relay service started")


async def shutdown() -> None:
    """Stop services in reverse startup order."""
    from relay_service.infra.database.session import close_database
    from relay_service.infra.tasks.broker import stop_taskiq
    from relay_service.infra.tasks.scheduler import stop_scheduler

    await stop_scheduler()
    await stop_taskiq()
    await close_database()
    logger.info("Relay service stopped")


@asynccontextmanager
async def lifespan() -> AsyncIterator[None]:
    """Run the service between startup and shutdown.

    Example:
        async with lifespan():
            await stop_event.wait()
    """
    await startup()
    try:
        yield
    finally:
        await shutdown()
