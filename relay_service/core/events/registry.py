"""Notification type registry for deserialization.

The registry maps stable event type strings to notification classes. The job
executor uses it to rebuild a notification from the ``(event_type,
event_payload)`` pair carried by an outbox job.

Registration is explicit and happens at import time, so the mapping is
complete once the feature modules are imported at startup.

Usage:
    from relay_service.core.events import DomainNotification, notification_registry

    @notification_registry.register
    class UserDeactivated(DomainNotification):
        event_type: ClassVar[str] = "users.UserDeactivated"
        user_id: UUID

    notification = notification_registry.deserialize(
        "users.UserDeactivated", '{"user_id": "..."}'
    )
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from typing import TYPE_CHECKING, TypeVar

if TYPE_CHECKING:
    from relay_service.core.events.base import DomainNotification

logger = logging.getLogger(__name__)

T = TypeVar("T", bound="DomainNotification")


class NotificationRegistry:
    """Registry for domain notification types.

    Thread-safe for read operations (registration is expected during startup).
    """

    def __init__(self) -> None:
        """Initialize empty registry."""
        self._types: dict[str, type[DomainNotification]] = {}

    def register(self, notification_class: type[T]) -> type[T]:
        """Register a notification class.

        Can be used as a decorator or direct method call.

        Raises:
            ValueError: If a different class already owns the event type.
        """
        event_type = notification_class.event_type
        existing = self._types.get(event_type)
        if existing is not None and existing is not notification_class:
            msg = (
                f"Event type '{event_type}' is already registered to "
                f"{existing.__module__}.{existing.__qualname__}"
            )
            raise ValueError(msg)

        self._types[event_type] = notification_class
        logger.debug(
            "Registered notification type",
            extra={"event_type": event_type, "class": notification_class.__name__},
        )
        return notification_class

    def get(self, event_type: str) -> type[DomainNotification] | None:
        """Get the class registered for an event type, or None."""
        return self._types.get(event_type)

    def get_or_raise(self, event_type: str) -> type[DomainNotification]:
        """Get the class registered for an event type.

        Raises:
            KeyError: If the event type is not registered.
        """
        notification_class = self._types.get(event_type)
        if notification_class is None:
            msg = f"Unknown event type: {event_type}"
            raise KeyError(msg)
        return notification_class

    def deserialize(self, event_type: str, payload: str) -> DomainNotification:
        """Rebuild a notification from its event type and JSON payload.

        Args:
            event_type: Stable key stored with the outbox row.
            payload: JSON text produced by ``DomainNotification.to_payload``.

        Returns:
            The validated notification instance.

        Raises:
            KeyError: If the event type is not registered.
            pydantic.ValidationError: If the payload is not valid JSON or does
                not match the notification schema.
        """
        notification_class = self.get_or_raise(event_type)
        return notification_class.model_validate_json(payload)

    def list_types(self) -> Iterator[str]:
        """Iterate over registered event types."""
        return iter(self._types)

    def clear(self) -> None:
        """Clear all registrations (useful for testing)."""
        self._types.clear()

    def __contains__(self, event_type: str) -> bool:
        """Check if an event type is registered."""
        return event_type in self._types

    def __len__(self) -> int:
        """Return number of registered event types."""
        return len(self._types)


# Global registry instance
notification_registry = NotificationRegistry()
