"""Job queue boundary used by the outbox poller."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from taskiq import AsyncTaskiqDecoratedTask

logger = logging.getLogger(__name__)


@runtime_checkable
class JobQueue(Protocol):
    """Hands one outbox row to the background job queue.

    ``enqueue`` returns once the queue has accepted the job and raises if it
    did not. The queue later invokes the job executor at least once.
    """

    async def enqueue(self, event_type: str, event_payload: str) -> None: ...


class TaskiqJobQueue:
    """JobQueue backed by the ``outbox.process_event`` taskiq task."""

    def __init__(self, task: AsyncTaskiqDecoratedTask[..., Any] | None = None) -> None:
        self._task = task

    @property
    def task(self) -> AsyncTaskiqDecoratedTask[..., Any]:
        if self._task is None:
            # Imported lazily: the task module pulls in the broker
            from relay_service.workers.outbox.tasks import process_outbox_event

            self._task = process_outbox_event
        return self._task

    async def enqueue(self, event_type: str, event_payload: str) -> None:
        task_handle = await self.task.kiq(event_type=event_type, event_payload=event_payload)
        logger.debug(
            "Outbox job enqueued",
            extra={"event_type": event_type, "task_id": task_handle.task_id},
        )


__all__ = ["JobQueue", "TaskiqJobQueue"]
