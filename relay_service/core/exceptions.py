"""Custom exception classes for the relay service.

Expected business outcomes (validation, authorization, handler failures) are
returned as ``Result`` values by the mediator. The exceptions here are raised
for configuration mistakes and for conditions that must reach the job queue
so that its retry policy can act.
"""

from __future__ import annotations

from typing import Any


class AppException(Exception):
    """Base application exception.

    All custom exceptions should inherit from this class.

    Attributes:
        detail: Human-readable error message.
        type: Error type identifier.
        title: Short, human-readable summary of the problem type.
        extra: Additional context-specific information about the error.

    Example:
        raise AppException(
            detail="Could not deserialize event of type 'users.UserRegistered'.",
            type="event-deserialization-failed",
            title="Event Deserialization Failed",
            extra={"event_type": "users.UserRegistered"},
        )
    """

    default_type = "about:blank"
    default_title = "Error"

    def __init__(
        self,
        detail: str,
        type: str | None = None,
        title: str | None = None,
        extra: dict[str, Any] | None = None,
    ) -> None:
        """Initialize application exception.

        Args:
            detail: Human-readable error message.
            type: Error type identifier.
            title: Short summary of the problem type.
            extra: Additional context about the error.
        """
        self.detail = detail
        self.type = type or self.default_type
        self.title = title or self.default_title
        self.extra = extra or {}
        super().__init__(detail)


class HandlerNotFoundError(AppException):
    """Raised when the mediator has no handler for a message type.

    This is a wiring mistake, never a transient condition.
    """

    default_type = "handler-not-found"
    default_title = "Handler Not Found"


class EventDeserializationError(AppException):
    """Raised when an outbox payload cannot be turned back into a notification."""

    default_type = "event-deserialization-failed"
    default_title = "Event Deserialization Failed"


class EventProcessingError(AppException):
    """Raised when publishing a deserialized notification returned a failure."""

    default_type = "event-processing-failed"
    default_title = "Event Processing Failed"


class OutboxCaptureError(AppException):
    """Raised when pending notifications cannot be serialized into outbox rows.

    Raising from the flush hook aborts the surrounding commit.
    """

    default_type = "outbox-capture-failed"
    default_title = "Outbox Capture Failed"
