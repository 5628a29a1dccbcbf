"""Domain notifications for the users feature.

These are captured into the outbox in the same transaction as the user change
and replayed by workers to update the search index and send emails.
"""

from __future__ import annotations

from typing import ClassVar
from uuid import UUID

from pydantic import Field

from relay_service.core.events import DomainNotification, notification_registry


@notification_registry.register
class UserRegistered(DomainNotification):
    """Published when a user account is created with an email address.

    Example:
        notification = UserRegistered(
            user_id=user.id,
            name="alice",
            email="alice@x.com",
            language="en",
        )
    """

    event_type: ClassVar[str] = "users.UserRegistered"

    user_id: UUID = Field(description="Id of the new user")
    name: str = Field(description="User name")
    email: str = Field(description="Email address the welcome mail goes to")
    language: str = Field(default="pl", description="Language code for user-facing messages")


@notification_registry.register
class UserDeactivated(DomainNotification):
    """Published when an active user is deactivated."""

    event_type: ClassVar[str] = "users.UserDeactivated"

    user_id: UUID = Field(description="Id of the deactivated user")
