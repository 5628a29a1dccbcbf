"""SQLAlchemy models for the users feature."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from relay_service.core.database import Base, TimestampMixin, UUIDv7PKMixin, generate_uuid7
from relay_service.core.events import AggregateRoot
from relay_service.features.users.notifications import UserDeactivated, UserRegistered

DEFAULT_LANGUAGE = "pl"


class User(Base, UUIDv7PKMixin, TimestampMixin, AggregateRoot):
    """User account.

    State changes record notifications on the aggregate; they reach the
    outbox when the session flushes.
    """

    __tablename__ = "users"

    user_name: Mapped[str] = mapped_column(String(150), nullable=False, unique=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    language: Mapped[str] = mapped_column(String(8), nullable=False, default=DEFAULT_LANGUAGE)
    deactivated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        comment="When the account was deactivated; NULL while active",
    )

    @classmethod
    def create(
        cls,
        user_name: str,
        email: str | None,
        language: str = DEFAULT_LANGUAGE,
    ) -> User:
        """Create a new user.

        ``UserRegistered`` is recorded only when an email address is given,
        since its handlers need somewhere to send the welcome mail.
        """
        # Assigned up front so the notification can carry it
        user = cls(id=generate_uuid7(), user_name=user_name, email=email, language=language)

        if email and email.strip():
            user.record_notification(
                UserRegistered(
                    user_id=user.id,
                    name=user_name,
                    email=email,
                    language=language,
                )
            )
        return user

    @property
    def is_active(self) -> bool:
        return self.deactivated_at is None

    def deactivate(self, at: datetime) -> bool:
        """Deactivate the account.

        Returns:
            False if the user was already deactivated (nothing recorded)
        """
        if self.deactivated_at is not None:
            return False

        self.deactivated_at = at
        self.record_notification(UserDeactivated(user_id=self.id))
        return True

    def __repr__(self) -> str:
        return f"<User(id={self.id}, user_name={self.user_name}, active={self.is_active})>"
