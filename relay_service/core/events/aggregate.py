"""Aggregate root mixin that stages domain notifications.

Business methods record notifications on the aggregate; the outbox capture
hook harvests them when the unit of work flushes. The buffer is an unmapped
instance attribute created on first use, so aggregates loaded by the ORM
(which bypasses ``__init__``) behave the same as freshly constructed ones.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from relay_service.core.events.base import DomainNotification

_BUFFER_ATTR = "_pending_notifications"


class AggregateRoot:
    """Mixin for entities that raise domain notifications.

    Example:
        class User(Base, UUIDv7PKMixin, AggregateRoot):
            def deactivate(self, at: datetime) -> None:
                self.deactivated_at = at
                self.record_notification(UserDeactivated(user_id=self.id))
    """

    def _notification_buffer(self) -> list[DomainNotification]:
        buffer = self.__dict__.get(_BUFFER_ATTR)
        if buffer is None:
            buffer = []
            self.__dict__[_BUFFER_ATTR] = buffer
        return buffer

    def record_notification(self, notification: DomainNotification) -> None:
        """Append a notification to the pending buffer."""
        self._notification_buffer().append(notification)

    @property
    def pending_notifications(self) -> tuple[DomainNotification, ...]:
        """Notifications recorded since the last harvest, oldest first."""
        return tuple(self._notification_buffer())

    @property
    def has_pending_notifications(self) -> bool:
        return bool(self.__dict__.get(_BUFFER_ATTR))

    def pull_notifications(self) -> list[DomainNotification]:
        """Return the pending notifications and empty the buffer."""
        buffer = self._notification_buffer()
        pulled = list(buffer)
        buffer.clear()
        return pulled

    def restore_notifications(self, notifications: Iterable[DomainNotification]) -> None:
        """Put harvested notifications back in front of any newer ones."""
        buffer = self._notification_buffer()
        buffer[:0] = list(notifications)

    def clear_notifications(self) -> None:
        """Discard pending notifications."""
        self._notification_buffer().clear()
