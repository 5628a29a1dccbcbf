"""Outbox job task definition.

The poller enqueues one ``outbox.process_event`` job per outbox row. A worker
runs it through the job executor; raising marks the attempt failed and
``SimpleRetryMiddleware`` re-enqueues it up to ``TASK_MAX_RETRIES`` times.
"""

from __future__ import annotations

import logging

from relay_service.core.settings import get_task_settings
from relay_service.infra.tasks.broker import broker

logger = logging.getLogger(__name__)

PROCESS_EVENT_TASK_NAME = "outbox.process_event"

task_settings = get_task_settings()


@broker.task(
    task_name=PROCESS_EVENT_TASK_NAME,
    retry_on_error=True,
    max_retries=task_settings.max_retries,
)
async def process_outbox_event(event_type: str, event_payload: str) -> None:
    """Deserialize and publish one captured notification.

    Args:
        event_type: Stable notification type key from the outbox row.
        event_payload: JSON snapshot from the outbox row.

    Raises:
        EventDeserializationError: Unknown type or malformed payload.
        EventProcessingError: A handler returned a failure.

    Example:
        from relay_service.workers.outbox import process_outbox_event
        await process_outbox_event.kiq(
            event_type="users.UserDeactivated",
            event_payload='{"user_id": "..."}',
        )
    """
    from relay_service.app.container import get_job_executor

    await get_job_executor().process_event(event_type, event_payload)
