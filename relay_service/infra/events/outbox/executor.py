"""Job executor: turns an outbox job back into an in-process notification.

The job queue invokes ``JobExecutor.process_event`` with the
``(event_type, event_payload)`` pair stored on the outbox row. The executor
rebuilds the notification through the type registry and publishes it through
the mediator. Any failure is raised so that the job queue's retry policy
re-runs the whole job; handlers must therefore be idempotent.

The executor keeps no state between calls and touches no database, so it is
safe to run concurrently and more than once for the same job.
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING

from relay_service.core.events.registry import NotificationRegistry, notification_registry
from relay_service.core.exceptions import EventDeserializationError, EventProcessingError
from relay_service.infra.logging.context import log_context
from relay_service.infra.metrics.prometheus import (
    outbox_event_processing_seconds,
    outbox_events_processed_total,
)

if TYPE_CHECKING:
    from relay_service.core.events.base import DomainNotification
    from relay_service.core.mediator import Mediator

logger = logging.getLogger(__name__)


class JobExecutor:
    """Deserialize outbox jobs and publish them through the mediator."""

    def __init__(
        self,
        mediator: Mediator,
        registry: NotificationRegistry = notification_registry,
    ) -> None:
        self._mediator = mediator
        self._registry = registry

    async def process_event(self, event_type: str, event_payload: str) -> None:
        """Process one outbox job.

        Args:
            event_type: Stable notification type key.
            event_payload: JSON snapshot of the notification.

        Raises:
            EventDeserializationError: If the type is unknown or the payload
                does not match it. The mediator is not called.
            EventProcessingError: If publishing returned a failed result.
        """
        with log_context(event_type=event_type):
            await self._process(event_type, event_payload)

    async def _process(self, event_type: str, event_payload: str) -> None:
        start = time.perf_counter()
        status = "failed"
        try:
            logger.info("Processing outbox event")
            notification = self._deserialize(event_type, event_payload)

            result = await self._mediator.publish(notification)
            if result.is_failed:
                logger.warning(
                    "Publishing outbox event failed",
                    extra={"errors": result.error_message},
                )
                raise EventProcessingError(
                    f"Processing of event type '{event_type}' failed: {result.error_message}",
                    extra={"event_type": event_type, "errors": result.error_message},
                )

            status = "succeeded"
            logger.info("Processed outbox event")
        finally:
            outbox_events_processed_total.labels(event_type=event_type, status=status).inc()
            outbox_event_processing_seconds.labels(event_type=event_type).observe(
                time.perf_counter() - start
            )

    def _deserialize(self, event_type: str, event_payload: str) -> DomainNotification:
        try:
            return self._registry.deserialize(event_type, event_payload)
        except (KeyError, ValueError) as e:
            # pydantic.ValidationError is a ValueError
            logger.warning(
                "Could not deserialize outbox event",
                extra={"error": str(e)},
            )
            raise EventDeserializationError(
                f"Could not deserialize event of type '{event_type}'.",
                extra={"event_type": event_type},
            ) from e


__all__ = ["JobExecutor"]
