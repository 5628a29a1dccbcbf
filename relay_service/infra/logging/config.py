"""Logging configuration using dictConfig.

All handlers are attached to the root logger; application loggers propagate
up. Structured fields are passed with ``extra={...}`` and rendered by
``JSONFormatter`` when JSON output is enabled.
"""

from __future__ import annotations

import logging
import logging.config
from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from relay_service.core.settings.logs import LoggingSettings

_LOGGING_INITIALIZED = False

TEXT_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"


def setup_logging(
    log_settings: LoggingSettings | None = None,
    *,
    force: bool = False,
) -> None:
    """Ensure logging is configured once across entrypoints.

    Args:
        log_settings: Optional logging settings instance. If omitted, settings
            are loaded via get_logging_settings().
        force: Reconfigure logging even if it was already initialized.
    """
    global _LOGGING_INITIALIZED

    if _LOGGING_INITIALIZED and not force:
        return

    settings_obj = log_settings
    if settings_obj is None:
        from relay_service.core.settings import get_logging_settings

        settings_obj = get_logging_settings()

    configure_logging(
        log_level=settings_obj.level,
        json_logs=settings_obj.json_logs,
        service_name=settings_obj.service_name,
        console_enabled=settings_obj.console_enabled,
        file_path=settings_obj.file_path,
        file_max_bytes=settings_obj.file_max_bytes,
        file_backup_count=settings_obj.file_backup_count,
        include_context=settings_obj.include_context,
        library_levels=settings_obj.library_levels,
    )
    _LOGGING_INITIALIZED = True


def configure_logging(
    log_level: str = "INFO",
    json_logs: bool = True,
    service_name: str = "relay-service",
    console_enabled: bool = True,
    file_path: str | Path | None = None,
    file_max_bytes: int = 10 * 1024 * 1024,
    file_backup_count: int = 5,
    include_context: bool = True,
    library_levels: dict[str, str] | None = None,
) -> None:
    """Apply a dictConfig built from the given options.

    Args:
        log_level: Root logger level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        json_logs: Render records as JSON Lines instead of plain text.
        service_name: Static ``service`` field added to JSON records.
        console_enabled: Attach a stderr stream handler.
        file_path: Attach a rotating file handler writing to this path.
        file_max_bytes: Rotation threshold for the file handler.
        file_backup_count: Rotated files to keep.
        include_context: Inject contextvars-bound fields into every record.
        library_levels: Per-logger level overrides for third-party libraries.
    """
    formatter_name = "json" if json_logs else "text"
    handler_filters = ["context"] if include_context else []

    handlers: dict[str, Any] = {}
    if console_enabled:
        handlers["console"] = {
            "class": "logging.StreamHandler",
            "formatter": formatter_name,
            "filters": handler_filters,
        }
    if file_path:
        path = Path(file_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        handlers["file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "filename": str(path),
            "maxBytes": file_max_bytes,
            "backupCount": file_backup_count,
            "encoding": "utf-8",
            "formatter": formatter_name,
            "filters": handler_filters,
        }

    config: dict[str, Any] = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "json": {
                "()": "relay_service.infra.logging.formatters.JSONFormatter",
                "fmt_keys": {"level": "levelname", "logger": "name", "message": "message"},
                "static": {"service": service_name},
            },
            "text": {
                "format": TEXT_FORMAT,
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
        },
        "filters": {
            "context": {
                "()": "relay_service.infra.logging.context.ContextInjectingFilter",
            },
        },
        "handlers": handlers,
        "loggers": {
            name: {"level": level} for name, level in (library_levels or {}).items()
        },
        "root": {
            "level": log_level.upper(),
            "handlers": list(handlers),
        },
    }

    logging.config.dictConfig(config)
    logging.captureWarnings(True)
