"""Task execution infrastructure using Taskiq and APScheduler.

- broker.py: Taskiq broker configuration (taskiq-aio-pika or in-memory)
- scheduler.py: APScheduler job that runs the outbox poller on an interval

For task definitions (the actual work), see the `workers/` package.

Run the worker to execute tasks:
    taskiq worker relay_service.infra.tasks.broker:broker
"""

from __future__ import annotations

from relay_service.infra.tasks.broker import broker, start_taskiq, stop_taskiq
from relay_service.infra.tasks.scheduler import (
    PROCESS_OUTBOX_JOB_ID,
    get_job_status,
    scheduler,
    setup_scheduled_jobs,
    start_scheduler,
    stop_scheduler,
)

__all__ = [
    "PROCESS_OUTBOX_JOB_ID",
    "broker",
    "get_job_status",
    "scheduler",
    "setup_scheduled_jobs",
    "start_scheduler",
    "stop_scheduler",
    "start_taskiq",
    "stop_taskiq",
]
