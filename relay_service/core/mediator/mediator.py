"""In-process mediator for requests and notifications.

Handlers are registered explicitly once at startup in a ``HandlerRegistry``;
no runtime type scanning happens on the dispatch path.

Dispatch pipeline for both ``send`` and ``publish``:
    1. Authorization against the message type's declared policy
    2. Validation: every registered validator runs, failures are collected
    3. Handling: the single request handler, or every notification handler
       in registration order, stopping at the first failed result
"""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from collections.abc import Callable, Sequence
from typing import Any, Protocol, runtime_checkable

from relay_service.core.exceptions import HandlerNotFoundError
from relay_service.core.mediator.authorization import (
    ANONYMOUS,
    CurrentUser,
    get_policy,
    is_authorized,
)
from relay_service.core.mediator.results import Result, UnauthorizedError, ValidationError
from relay_service.infra.metrics.prometheus import mediator_handler_failures_total

logger = logging.getLogger(__name__)


@runtime_checkable
class Handler(Protocol):
    """Handles one request or notification type."""

    async def handle(self, message: Any) -> Result[Any]: ...


@runtime_checkable
class Validator(Protocol):
    """Returns the list of failure messages for a message (empty when valid)."""

    async def validate(self, message: Any) -> list[str]: ...


class HandlerRegistry:
    """Explicit mapping from message types to handlers and validators."""

    def __init__(self) -> None:
        self._request_handlers: dict[type, Handler] = {}
        self._notification_handlers: dict[type, list[Handler]] = defaultdict(list)
        self._validators: dict[type, list[Validator]] = defaultdict(list)

    def add_request_handler(self, request_type: type, handler: Handler) -> None:
        """Register the single handler for a request type.

        Raises:
            ValueError: If the request type already has a handler.
        """
        if request_type in self._request_handlers:
            msg = f"A handler for {request_type.__name__} is already registered"
            raise ValueError(msg)
        self._request_handlers[request_type] = handler

    def add_notification_handler(self, notification_type: type, handler: Handler) -> None:
        """Append a handler for a notification type (invoked in registration order)."""
        self._notification_handlers[notification_type].append(handler)

    def add_validator(self, message_type: type, validator: Validator) -> None:
        self._validators[message_type].append(validator)

    def request_handler(self, request_type: type) -> Handler | None:
        return self._request_handlers.get(request_type)

    def notification_handlers(self, notification_type: type) -> Sequence[Handler]:
        return tuple(self._notification_handlers.get(notification_type, ()))

    def validators(self, message_type: type) -> Sequence[Validator]:
        return tuple(self._validators.get(message_type, ()))


class Mediator:
    """Dispatches requests to their handler and notifications to all handlers.

    Args:
        registry: Handlers and validators wired at startup.
        user_provider: Returns the caller identity used for authorization.
            Background jobs run as the anonymous user.

    Example:
        registry = HandlerRegistry()
        registry.add_notification_handler(UserRegistered, IndexRegisteredUserHandler(index))
        mediator = Mediator(registry)

        result = await mediator.publish(UserRegistered(...))
    """

    def __init__(
        self,
        registry: HandlerRegistry,
        user_provider: Callable[[], CurrentUser] | None = None,
    ) -> None:
        self._registry = registry
        self._user_provider = user_provider or (lambda: ANONYMOUS)

    @property
    def registry(self) -> HandlerRegistry:
        return self._registry

    async def send(self, request: Any) -> Result[Any]:
        """Dispatch a request to its single handler.

        Raises:
            HandlerNotFoundError: If no handler is registered for the request type.
        """
        request_type = type(request)
        handler = self._registry.request_handler(request_type)
        if handler is None:
            raise HandlerNotFoundError(
                f"No handler found for {request_type.__name__}",
                extra={"request_type": request_type.__name__},
            )

        rejection = await self._authorize_and_validate(request)
        if rejection is not None:
            return rejection

        return await self._invoke(request, handler)

    async def publish(self, notification: Any) -> Result[Any]:
        """Dispatch a notification to every registered handler in order.

        The first failed result stops the loop and is returned; later
        handlers do not run in this call.

        Raises:
            HandlerNotFoundError: If no handler is registered for the notification type.
        """
        notification_type = type(notification)
        handlers = self._registry.notification_handlers(notification_type)
        if not handlers:
            raise HandlerNotFoundError(
                f"No handlers found for {notification_type.__name__}",
                extra={"request_type": notification_type.__name__},
            )

        rejection = await self._authorize_and_validate(notification)
        if rejection is not None:
            return rejection

        for handler in handlers:
            result = await self._invoke(notification, handler)
            if result.is_failed:
                return result

        return Result.ok()

    async def _authorize_and_validate(self, message: Any) -> Result[Any] | None:
        message_type = type(message)

        if not is_authorized(get_policy(message_type), self._user_provider()):
            logger.warning(
                "Unauthorized %s",
                message_type.__name__,
                extra={"request_type": message_type.__name__},
            )
            return Result.fail(UnauthorizedError("Unauthorized"))

        failures = await self._validate(message)
        if failures:
            errors = ", ".join(failures)
            logger.warning(
                "Validation failed for %s: %s",
                message_type.__name__,
                errors,
                extra={"request_type": message_type.__name__},
            )
            return Result.fail(ValidationError(errors))

        return None

    async def _validate(self, message: Any) -> list[str]:
        validators = self._registry.validators(type(message))
        if not validators:
            return []
        outcomes = await asyncio.gather(*(v.validate(message) for v in validators))
        return [failure for outcome in outcomes for failure in outcome if failure]

    async def _invoke(self, message: Any, handler: Handler) -> Result[Any]:
        request_type = type(message).__name__
        handler_type = type(handler).__name__
        log_extra = {"request_type": request_type, "handler_type": handler_type}

        logger.info("Handling %s with %s", request_type, handler_type, extra=log_extra)
        result = await handler.handle(message)
        logger.info("Handled %s with %s", request_type, handler_type, extra=log_extra)

        if result.is_failed:
            mediator_handler_failures_total.labels(request_type=request_type).inc()
        return result
