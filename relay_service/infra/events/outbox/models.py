"""OutboxMessage SQLAlchemy model for the transactional outbox pattern.

Notifications are written to this table in the same transaction as the
domain change that raised them, so either both are stored or neither is.
The poller later claims pending rows and hands them to the job queue.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from relay_service.core.database.base import Base, UUIDv7PKMixin
from relay_service.core.database.types import JSONPayload


class OutboxMessage(Base, UUIDv7PKMixin):
    """Durable record of a notification awaiting hand-off to the job queue.

    Attributes:
        id: UUID v7 primary key, generated at insert time
        event_type: Stable notification type key used for deserialization
        event_payload: JSON snapshot of the notification when it was raised
        created_at: Insertion time from the injected clock (claim order)
        processed_at: When the row was enqueued; NULL means pending
        error: Last enqueue failure, cleared on success
        retry_count: Failed enqueue attempts
        next_attempt_at: Row is not claimable before this time when set

    A row is claimable iff processed_at IS NULL, next_attempt_at is NULL or
    due, and (when a ceiling is configured) retry_count is below it.
    """

    __tablename__ = "outbox_messages"

    event_type: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Stable notification type key",
    )
    event_payload: Mapped[str] = mapped_column(
        JSONPayload(),
        nullable=False,
        comment="JSON-serialized notification",
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        index=True,
        comment="When the notification was captured",
    )

    # Processing state
    processed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        comment="When the row was handed off to the job queue",
    )
    error: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
        comment="Last enqueue failure",
    )
    retry_count: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        comment="Number of failed enqueue attempts",
    )
    next_attempt_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        index=True,
        comment="Earliest time the row may be claimed again",
    )

    __table_args__ = (
        # Pending rows in claim order
        Index("ix_outbox_messages_pending", "processed_at", "created_at"),
    )

    @property
    def is_processed(self) -> bool:
        """Check if the row has been handed off."""
        return self.processed_at is not None

    def __repr__(self) -> str:
        """String representation."""
        status = "processed" if self.is_processed else "pending"
        return (
            f"<OutboxMessage(id={self.id}, type={self.event_type}, "
            f"status={status}, retries={self.retry_count})>"
        )
