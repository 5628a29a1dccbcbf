"""Taskiq broker configuration for outbox jobs.

Two backends, chosen by ``TASK_BROKER``:

1. **rabbitmq** (default): ``taskiq-aio-pika`` on the prefixed ``outbox``
   queue. Jobs survive restarts and are executed by a separate worker:

       taskiq worker relay_service.infra.tasks.broker:broker

2. **memory**: taskiq ``InMemoryBroker``. Jobs run inside the enqueuing
   process. Also used when RabbitMQ is not configured, so a single process
   can run the whole pipeline in development and tests.

Retries
=======

``SimpleRetryMiddleware`` re-enqueues a task that raised when the task was
declared with ``retry_on_error=True``, up to its ``max_retries`` label. The
job executor raises on every failure, so this middleware owns job-level
retry for the outbox.

Task Discovery
==============

Tasks are registered by importing their modules at the bottom of this file.
The worker process imports this module, so all tasks are available to it.
"""

from __future__ import annotations

import logging

from taskiq import AsyncBroker, InMemoryBroker
from taskiq.middlewares import SimpleRetryMiddleware
from taskiq_aio_pika import AioPikaBroker

from relay_service.core.settings import get_rabbit_settings, get_task_settings
from relay_service.infra.logging.config import setup_logging

logger = logging.getLogger(__name__)

# Get settings from modular configuration
rabbit_settings = get_rabbit_settings()
task_settings = get_task_settings()
setup_logging()


def _use_memory_broker() -> bool:
    if task_settings.broker == "memory":
        return True

    if not rabbit_settings.is_configured:
        logger.warning("RabbitMQ not configured - outbox jobs run in-process")
        return True

    return False


def _create_broker() -> AsyncBroker:
    """Create the job broker based on settings."""
    retry = SimpleRetryMiddleware(default_retry_count=task_settings.max_retries)

    if _use_memory_broker():
        logger.info("Using in-memory taskiq broker")
        return InMemoryBroker().with_middlewares(retry)

    queue_name = rabbit_settings.get_prefixed_queue(rabbit_settings.default_queue)
    logger.info(
        "Taskiq RabbitMQ broker configured",
        extra={"queue": queue_name, "prefetch": rabbit_settings.prefetch_count},
    )
    return AioPikaBroker(
        url=rabbit_settings.get_url(),
        queue_name=queue_name,
        qos=rabbit_settings.prefetch_count,
        declare_exchange=True,
        declare_queues=True,
    ).with_middlewares(retry)


broker: AsyncBroker = _create_broker()


async def start_taskiq() -> None:
    """Start the Taskiq broker.

    Opens the RabbitMQ connection used for enqueuing. Executing jobs needs a
    worker process unless the in-memory broker is in use.

    Raises:
        ConnectionError: If unable to connect to RabbitMQ.
    """
    logger.info("Starting Taskiq broker")

    try:
        await broker.startup()
        logger.info("Taskiq broker started successfully")
    except Exception as e:
        logger.exception("Failed to start Taskiq broker", extra={"error": str(e)})
        raise


async def stop_taskiq() -> None:
    """Stop the Taskiq broker and close its connections."""
    logger.info("Stopping Taskiq broker")

    try:
        await broker.shutdown()
        logger.info("Taskiq broker stopped successfully")
    except Exception as e:
        logger.exception("Error stopping Taskiq broker", extra={"error": str(e)})


# =============================================================================
# Task Module Imports
# =============================================================================
# The worker imports: taskiq worker relay_service.infra.tasks.broker:broker
# Importing here ensures all tasks are registered with it.

import relay_service.workers.outbox.tasks  # noqa: E402, F401
