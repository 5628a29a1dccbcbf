"""Outbox poller: moves pending outbox rows into the job queue.

Each call to ``process_pending`` is one sequential pass:
1. Claim up to ``batch_size`` due rows, oldest first, with FOR UPDATE SKIP
   LOCKED so concurrent pollers receive disjoint batches
2. Enqueue each row as an ``outbox.process_event`` job
3. Mark rows processed, or record the enqueue failure for a later cycle
4. Commit all row mutations once

The pass is meant to be triggered on a fixed interval by the scheduler
(see ``relay_service.infra.tasks.scheduler``).
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from sqlalchemy.exc import SQLAlchemyError

from relay_service.core.clock import Clock, utc_now
from relay_service.core.settings import OutboxSettings, get_outbox_settings
from relay_service.infra.events.outbox.queue import JobQueue, TaskiqJobQueue
from relay_service.infra.events.outbox.repository import OutboxRepository
from relay_service.infra.metrics.prometheus import (
    outbox_batch_size,
    outbox_claim_failures_total,
    outbox_enqueue_failures_total,
    outbox_messages_enqueued_total,
)

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

    from relay_service.infra.events.outbox.models import OutboxMessage

logger = logging.getLogger(__name__)

# Global processor instance
_processor: OutboxProcessor | None = None


class OutboxProcessor:
    """Claims pending outbox rows and enqueues them as jobs.

    Attributes:
        batch_size: Rows claimed per pass
        max_enqueue_attempts: Failed enqueues before a row is dead-lettered
            (0 means unbounded)
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        queue: JobQueue,
        *,
        clock: Clock = utc_now,
        settings: OutboxSettings | None = None,
        repository: OutboxRepository | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._queue = queue
        self._clock = clock
        self._settings = settings or get_outbox_settings()
        self._repo = repository or OutboxRepository()

    @property
    def batch_size(self) -> int:
        return self._settings.batch_size

    @property
    def max_enqueue_attempts(self) -> int:
        return self._settings.max_enqueue_attempts

    async def process_pending(self) -> int:
        """Run one poll pass.

        A failing claim query is logged and the pass returns 0; the next
        scheduled run retries. If the task is cancelled mid-batch, rows
        already marked are committed before the cancellation propagates and
        unvisited rows stay claimable.

        Returns:
            Number of rows enqueued successfully
        """
        async with self._session_factory() as session:
            try:
                messages = await self._repo.claim_pending(
                    session,
                    now=self._clock(),
                    batch_size=self.batch_size,
                    max_attempts=self.max_enqueue_attempts,
                )
            except SQLAlchemyError:
                logger.exception(
                    "Database error while fetching outbox messages. Will retry on next run."
                )
                outbox_claim_failures_total.inc()
                await session.rollback()
                return 0

            outbox_batch_size.observe(len(messages))
            if not messages:
                logger.debug("No new outbox messages")
                return 0

            logger.debug("Processing outbox batch", extra={"batch_size": len(messages)})

            enqueued = 0
            try:
                for message in messages:
                    if await self._enqueue(message):
                        enqueued += 1
            except asyncio.CancelledError:
                logger.warning(
                    "Outbox pass cancelled, committing rows handled so far",
                    extra={"enqueued": enqueued, "claimed": len(messages)},
                )
                await asyncio.shield(session.commit())
                raise

            await session.commit()

        logger.info(
            "Finished processing batch",
            extra={"enqueued": enqueued, "claimed": len(messages)},
        )
        return enqueued

    async def _enqueue(self, message: OutboxMessage) -> bool:
        event_type = message.event_type
        logger.debug(
            "Enqueuing event",
            extra={"outbox_message_id": str(message.id), "event_type": event_type},
        )
        try:
            await self._queue.enqueue(event_type, message.event_payload)
        except Exception as e:
            self._repo.mark_failed(
                message,
                f"Failed to enqueue: {e}",
                now=self._clock(),
                retry_delay_seconds=self._settings.retry_delay_seconds,
                max_retry_delay_seconds=self._settings.max_retry_delay_seconds,
            )
            outbox_enqueue_failures_total.labels(event_type=event_type).inc()

            dead_lettered = (
                self._settings.has_retry_ceiling
                and message.retry_count >= self.max_enqueue_attempts
            )
            level = logging.ERROR if dead_lettered else logging.WARNING
            logger.log(
                level,
                "Failed to enqueue outbox message",
                extra={
                    "outbox_message_id": str(message.id),
                    "event_type": event_type,
                    "error": str(e),
                    "retry_count": message.retry_count,
                    "dead_lettered": dead_lettered,
                },
            )
            return False

        self._repo.mark_processed(message, now=self._clock())
        outbox_messages_enqueued_total.labels(event_type=event_type).inc()
        return True


def get_outbox_processor() -> OutboxProcessor:
    """Get the global outbox processor, creating it on first use."""
    global _processor

    if _processor is None:
        from relay_service.infra.database.session import AsyncSessionLocal

        _processor = OutboxProcessor(AsyncSessionLocal, TaskiqJobQueue())
    return _processor


def reset_outbox_processor() -> None:
    """Drop the global processor (tests and settings reloads)."""
    global _processor
    _processor = None


__all__ = [
    "OutboxProcessor",
    "get_outbox_processor",
    "reset_outbox_processor",
]
