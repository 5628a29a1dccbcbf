"""Event infrastructure for reliable notification delivery.

This package provides the infrastructure for the transactional outbox pattern:
- OutboxMessage model for storing captured notifications
- OutboxProcessor for handing pending rows to the job queue
- JobExecutor for replaying jobs through the mediator
- Outbox repository for claim and housekeeping queries
"""

from relay_service.infra.events.outbox.executor import JobExecutor
from relay_service.infra.events.outbox.models import OutboxMessage
from relay_service.infra.events.outbox.processor import OutboxProcessor, get_outbox_processor
from relay_service.infra.events.outbox.repository import OutboxRepository

__all__ = [
    "JobExecutor",
    "OutboxMessage",
    "OutboxProcessor",
    "OutboxRepository",
    "get_outbox_processor",
]
