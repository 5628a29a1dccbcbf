"""Process wiring: composition root and lifespan."""

from __future__ import annotations

from relay_service.app.container import (
    build_mediator,
    get_job_executor,
    get_mediator,
    register_user_handlers,
    reset_container,
)
from relay_service.app.lifespan import lifespan, shutdown, startup

__all__ = [
    "build_mediator",
    "get_job_executor",
    "get_mediator",
    "lifespan",
    "register_user_handlers",
    "reset_container",
    "shutdown",
    "startup",
]
