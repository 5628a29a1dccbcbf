"""Domain notification base class.

A domain notification is an immutable record of something that happened to
an aggregate. It carries only the data downstream handlers need and is
persisted to the outbox as JSON, keyed by its stable ``event_type``.
"""

from __future__ import annotations

from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict


class DomainNotification(BaseModel):
    """Base class for all domain notifications.

    Subclasses must define:
    - event_type: ClassVar[str] - stable key stored with the outbox row and
      used to look the class up again when the job runs

    The key must survive refactors (moving or renaming the Python class), so
    it is declared explicitly rather than derived from the module path.

    Example:
        @notification_registry.register
        class UserRegistered(DomainNotification):
            event_type: ClassVar[str] = "users.UserRegistered"

            user_id: UUID
            name: str
            email: str
            language: str
    """

    event_type: ClassVar[str]

    # Intermediate hierarchies set this to skip the event_type check
    __abstract__: ClassVar[bool] = True

    model_config = ConfigDict(
        frozen=True,  # Notifications are immutable
        extra="forbid",  # Strict schema validation
    )

    def __init_subclass__(cls, **kwargs: Any) -> None:
        """Validate that concrete subclasses define event_type."""
        super().__init_subclass__(**kwargs)
        if cls.__dict__.get("__abstract__", False):
            return
        event_type = cls.__dict__.get("event_type")
        if not isinstance(event_type, str) or not event_type:
            msg = f"{cls.__name__} must define 'event_type' class variable"
            raise TypeError(msg)

    def to_payload(self) -> str:
        """Serialize the notification to the JSON text stored in the outbox."""
        return self.model_dump_json()
