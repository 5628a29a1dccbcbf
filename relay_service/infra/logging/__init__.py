"""Logging infrastructure.

Basic usage:
    import logging

    from relay_service.infra.logging import set_log_context, setup_logging

    setup_logging()
    logger = logging.getLogger(__name__)

    set_log_context(event_type="users.UserRegistered")
    logger.info("Processing event")  # JSON record includes event_type
"""

from relay_service.infra.logging.config import configure_logging, setup_logging
from relay_service.infra.logging.context import (
    ContextInjectingFilter,
    clear_log_context,
    get_log_context,
    log_context,
    set_log_context,
)
from relay_service.infra.logging.formatters import JSONFormatter

__all__ = [
    "ContextInjectingFilter",
    "JSONFormatter",
    "clear_log_context",
    "configure_logging",
    "get_log_context",
    "log_context",
    "set_log_context",
    "setup_logging",
]
