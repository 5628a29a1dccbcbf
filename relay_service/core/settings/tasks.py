"""Background task settings.

This module provides settings for the taskiq broker that carries outbox jobs
and the APScheduler trigger that drives the poller.

Environment variables use TASK_ prefix.
Example: TASK_BROKER=memory
"""

from __future__ import annotations

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

BrokerBackend = Literal["rabbitmq", "memory"]


class TaskSettings(BaseSettings):
    """Job queue configuration.

    Environment variables use TASK_ prefix.

    Two broker backends are supported:
    1. rabbitmq (default): taskiq-aio-pika broker, jobs survive restarts
    2. memory: taskiq InMemoryBroker, jobs run in the enqueuing process
    """

    broker: BrokerBackend = Field(
        default="rabbitmq",
        description="Job queue backend: 'rabbitmq' or 'memory'",
    )

    max_retries: int = Field(
        default=5,
        ge=0,
        le=100,
        description="Times a failed outbox job is re-enqueued before it is given up",
    )

    scheduler_enabled: bool = Field(
        default=True,
        description="Run the APScheduler poll trigger in this process",
    )

    model_config = SettingsConfigDict(
        env_prefix="TASK_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        frozen=True,
        extra="ignore",
        env_ignore_empty=True,
    )
