"""Outbox job tasks."""

from __future__ import annotations

from .tasks import PROCESS_EVENT_TASK_NAME, process_outbox_event

__all__ = ["PROCESS_EVENT_TASK_NAME", "process_outbox_event"]
