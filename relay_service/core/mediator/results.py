"""Result values returned by mediator handlers.

Handlers report expected failures (validation, authorization, missing or
conflicting state, downstream rejection) as a failed ``Result`` instead of
raising. Exceptions stay reserved for faults the caller cannot act on.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class Error:
    """A single failure reason."""

    message: str
    metadata: dict[str, Any] = field(default_factory=dict, compare=False)

    def __str__(self) -> str:
        return self.message


class ValidationError(Error):
    """One or more validators rejected the message."""


class UnauthorizedError(Error):
    """The current caller may not send this message."""


class ForbiddenError(Error):
    """The caller is known but lacks permission for the target resource."""


class NotFoundError(Error):
    """A referenced entity does not exist."""


class ConflictError(Error):
    """The requested change conflicts with current state."""


@dataclass(frozen=True)
class Result(Generic[T]):
    """Outcome of a mediator call.

    Example:
        result = await mediator.send(RegisterUser(user_name="alice", ...))
        if result.is_failed:
            logger.warning("Registration failed: %s", result.error_message)
        else:
            user_id = result.value
    """

    value: T | None = None
    errors: tuple[Error, ...] = ()

    @classmethod
    def ok(cls, value: T | None = None) -> Result[T]:
        return cls(value=value)

    @classmethod
    def fail(cls, *errors: Error | str) -> Result[T]:
        """Build a failed result from errors or plain messages."""
        if not errors:
            msg = "A failed result needs at least one error"
            raise ValueError(msg)
        normalized = tuple(e if isinstance(e, Error) else Error(e) for e in errors)
        return cls(errors=normalized)

    @property
    def is_success(self) -> bool:
        return not self.errors

    @property
    def is_failed(self) -> bool:
        return bool(self.errors)

    @property
    def error(self) -> Error | None:
        """First error, if any."""
        return self.errors[0] if self.errors else None

    @property
    def error_message(self) -> str:
        """All error messages joined by ', '."""
        return ", ".join(e.message for e in self.errors)

    def has_error(self, error_type: type[Error]) -> bool:
        return any(isinstance(e, error_type) for e in self.errors)
