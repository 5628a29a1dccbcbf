"""Domain notifications, their type registry and the aggregate mixin.

Usage:
    from relay_service.core.events import (
        AggregateRoot,
        DomainNotification,
        notification_registry,
    )
"""

from relay_service.core.events.aggregate import AggregateRoot
from relay_service.core.events.base import DomainNotification
from relay_service.core.events.registry import NotificationRegistry, notification_registry

__all__ = [
    "AggregateRoot",
    "DomainNotification",
    "NotificationRegistry",
    "notification_registry",
]
