"""Mediator: explicit handler registry plus send/publish dispatch."""

from relay_service.core.mediator.authorization import (
    ANONYMOUS,
    AuthorizePolicy,
    CurrentUser,
    authorize,
)
from relay_service.core.mediator.mediator import Handler, HandlerRegistry, Mediator, Validator
from relay_service.core.mediator.results import (
    ConflictError,
    Error,
    ForbiddenError,
    NotFoundError,
    Result,
    UnauthorizedError,
    ValidationError,
)

__all__ = [
    "ANONYMOUS",
    "AuthorizePolicy",
    "ConflictError",
    "CurrentUser",
    "Error",
    "ForbiddenError",
    "Handler",
    "HandlerRegistry",
    "Mediator",
    "NotFoundError",
    "Result",
    "UnauthorizedError",
    "ValidationError",
    "Validator",
    "authorize",
]
