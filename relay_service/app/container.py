"""Composition root.

All handler wiring happens here, once per process, through explicit
registration calls. Both the API-side ``Mediator`` used to send commands and
the worker-side ``JobExecutor`` come from the same registry.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import TYPE_CHECKING

from relay_service.core.clock import Clock, utc_now
from relay_service.core.mediator import HandlerRegistry, Mediator
from relay_service.core.settings import get_app_settings
from relay_service.features.users import (
    DeactivateUser,
    DeactivateUserHandler,
    DeactivateUserValidator,
    EmailSender,
    InMemorySearchIndex,
    IndexRegisteredUserHandler,
    LoggingEmailSender,
    RegisterUser,
    RegisterUserHandler,
    RegisterUserValidator,
    RemoveDeactivatedUserFromIndexHandler,
    SearchIndex,
    SendRegistrationEmailHandler,
    UserDeactivated,
    UserRegistered,
)
from relay_service.infra.events.outbox.executor import JobExecutor

if TYPE_CHECKING:
    from collections.abc import Callable

    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

    from relay_service.core.mediator import CurrentUser

logger = logging.getLogger(__name__)


def register_user_handlers(
    registry: HandlerRegistry,
    *,
    session_factory: async_sessionmaker[AsyncSession],
    search_index: SearchIndex,
    email_sender: EmailSender,
    application_name: str,
    clock: Clock = utc_now,
) -> None:
    """Wire the users feature into the registry.

    Notification handlers run in the order registered here.
    """
    registry.add_request_handler(RegisterUser, RegisterUserHandler(session_factory))
    registry.add_validator(RegisterUser, RegisterUserValidator())

    registry.add_request_handler(
        DeactivateUser,
        DeactivateUserHandler(session_factory, clock=clock),
    )
    registry.add_validator(DeactivateUser, DeactivateUserValidator())

    registry.add_notification_handler(UserRegistered, IndexRegisteredUserHandler(search_index))
    registry.add_notification_handler(
        UserRegistered,
        SendRegistrationEmailHandler(email_sender, application_name),
    )
    registry.add_notification_handler(
        UserDeactivated,
        RemoveDeactivatedUserFromIndexHandler(search_index),
    )


def build_mediator(
    *,
    session_factory: async_sessionmaker[AsyncSession] | None = None,
    search_index: SearchIndex | None = None,
    email_sender: EmailSender | None = None,
    user_provider: Callable[[], CurrentUser] | None = None,
    clock: Clock = utc_now,
) -> Mediator:
    """Build a mediator with every feature registered.

    Collaborators left as None fall back to the process defaults: the shared
    session factory and the in-process search index and mail sender.
    """
    if session_factory is None:
        from relay_service.infra.database.session import AsyncSessionLocal

        session_factory = AsyncSessionLocal

    registry = HandlerRegistry()
    register_user_handlers(
        registry,
        session_factory=session_factory,
        search_index=search_index or InMemorySearchIndex(),
        email_sender=email_sender or LoggingEmailSender(),
        application_name=get_app_settings().service_name,
        clock=clock,
    )
    logger.debug("Mediator handlers registered")
    return Mediator(registry, user_provider=user_provider)


@lru_cache(maxsize=1)
def get_mediator() -> Mediator:
    """Process-wide mediator."""
    return build_mediator()


@lru_cache(maxsize=1)
def get_job_executor() -> JobExecutor:
    """Process-wide job executor used by the ``outbox.process_event`` task."""
    return JobExecutor(get_mediator())


def reset_container() -> None:
    """Drop cached instances (tests and settings reloads)."""
    get_job_executor.cache_clear()
    get_mediator.cache_clear()
