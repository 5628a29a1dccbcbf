"""Transactional outbox: capture, claim, enqueue and execute.

- models.py: ``OutboxMessage`` table
- capture.py: flush hook and ``NotificationPublisher`` that write rows
- repository.py: claim and housekeeping queries
- processor.py: the poller (``OutboxProcessor.process_pending``)
- queue.py: job queue boundary (``JobQueue``, ``TaskiqJobQueue``)
- executor.py: worker-side dispatch (``JobExecutor.process_event``)
"""

from __future__ import annotations

from relay_service.infra.events.outbox.capture import (
    NotificationPublisher,
    build_outbox_message,
    install_notification_capture,
    uninstall_notification_capture,
)
from relay_service.infra.events.outbox.executor import JobExecutor
from relay_service.infra.events.outbox.models import OutboxMessage
from relay_service.infra.events.outbox.processor import (
    OutboxProcessor,
    get_outbox_processor,
    reset_outbox_processor,
)
from relay_service.infra.events.outbox.queue import JobQueue, TaskiqJobQueue
from relay_service.infra.events.outbox.repository import OutboxRepository

__all__ = [
    "JobExecutor",
    "JobQueue",
    "NotificationPublisher",
    "OutboxMessage",
    "OutboxProcessor",
    "OutboxRepository",
    "TaskiqJobQueue",
    "build_outbox_message",
    "get_outbox_processor",
    "install_notification_capture",
    "reset_outbox_processor",
    "uninstall_notification_capture",
]
