"""Modular Pydantic Settings v2 configuration.

One settings class per concern, each with its own environment prefix:
    APP_     service identity
    DB_      PostgreSQL
    RABBIT_  RabbitMQ broker transport
    LOG_     logging
    OUTBOX_  poller and enqueue retry policy
    TASK_    job queue backend and job retry ceiling

Import settings via cached loaders:
    from relay_service.core.settings import get_outbox_settings

Configuration precedence (highest to lowest):
    1. init kwargs (testing/overrides)
    2. Environment variables (production)
    3. .env file (development only)
"""

from __future__ import annotations

from .app import AppSettings
from .loader import (
    clear_all_caches,
    get_app_settings,
    get_db_settings,
    get_logging_settings,
    get_outbox_settings,
    get_rabbit_settings,
    get_task_settings,
)
from .logs import LoggingSettings
from .outbox import OutboxSettings
from .postgres import PostgresSettings
from .rabbit import RabbitSettings
from .tasks import TaskSettings

__all__ = [
    "AppSettings",
    "LoggingSettings",
    "OutboxSettings",
    "PostgresSettings",
    "RabbitSettings",
    "TaskSettings",
    "clear_all_caches",
    "get_app_settings",
    "get_db_settings",
    "get_logging_settings",
    "get_outbox_settings",
    "get_rabbit_settings",
    "get_task_settings",
]
