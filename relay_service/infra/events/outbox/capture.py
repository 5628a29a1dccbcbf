"""Capture of domain notifications into the outbox.

Two paths write outbox rows inside the caller's unit of work:

1. Implicit: ``before_flush`` and ``before_commit`` listeners harvest
   notifications recorded on tracked ``AggregateRoot`` entities and add one
   ``OutboxMessage`` per notification to the unit of work, so rows commit
   atomically with the change that raised them. Harvested notifications
   are kept in ``session.info`` until the transaction ends; if it ends
   without a commit they are restored onto their aggregates, so a retried
   commit captures them again instead of losing them.
2. Explicit: ``NotificationPublisher`` stages notifications a business
   operation returned as a buffer.

Both stamp ``created_at`` from the clock in ``session.info["clock"]`` (or
``utc_now``) and fail closed: a serialization error aborts the flush.
"""

from __future__ import annotations

import itertools
import logging
from collections.abc import Iterable
from datetime import datetime
from typing import TYPE_CHECKING, Any

from pydantic_core import PydanticSerializationError
from sqlalchemy import event
from sqlalchemy.orm import Session, SessionTransaction

from relay_service.core.clock import Clock, utc_now
from relay_service.core.database.base import generate_uuid7
from relay_service.core.events.aggregate import AggregateRoot
from relay_service.core.exceptions import OutboxCaptureError
from relay_service.infra.events.outbox.models import OutboxMessage
from relay_service.infra.metrics.prometheus import outbox_messages_captured_total

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from relay_service.core.events.base import DomainNotification

logger = logging.getLogger(__name__)

CLOCK_INFO_KEY = "clock"
_STAGED_INFO_KEY = "relay_service.outbox.staged"


def resolve_clock(session: Session | AsyncSession) -> Clock:
    """Return the clock configured on the session, or ``utc_now``."""
    return session.info.get(CLOCK_INFO_KEY) or utc_now


def build_outbox_message(notification: DomainNotification, now: datetime) -> OutboxMessage:
    """Serialize one notification into a pending outbox row.

    Raises:
        OutboxCaptureError: If the notification cannot be serialized.
    """
    try:
        payload = notification.to_payload()
    except (PydanticSerializationError, TypeError, ValueError) as exc:
        raise OutboxCaptureError(
            f"Could not serialize notification '{notification.event_type}'",
            extra={"event_type": notification.event_type},
        ) from exc

    return OutboxMessage(
        id=generate_uuid7(),
        event_type=notification.event_type,
        event_payload=payload,
        created_at=now,
        processed_at=None,
        error=None,
        retry_count=0,
    )


def _tracked_aggregates(session: Session) -> list[AggregateRoot]:
    seen: set[int] = set()
    aggregates: list[AggregateRoot] = []
    for obj in itertools.chain(session.new, session.identity_map.values()):
        if id(obj) in seen or not isinstance(obj, AggregateRoot):
            continue
        seen.add(id(obj))
        if obj.has_pending_notifications:
            aggregates.append(obj)
    return aggregates


def _capture_pending_notifications(session: Session, flush_context: Any, instances: Any) -> None:
    """before_flush: turn pending aggregate notifications into outbox rows."""
    _ = flush_context, instances

    aggregates = _tracked_aggregates(session)
    if not aggregates:
        return

    now = resolve_clock(session)()
    harvested = [(aggregate, list(aggregate.pending_notifications)) for aggregate in aggregates]

    # Serialize everything before clearing any buffer
    rows = [
        build_outbox_message(notification, now)
        for _, notifications in harvested
        for notification in notifications
    ]

    for aggregate, _ in harvested:
        aggregate.clear_notifications()
    session.info.setdefault(_STAGED_INFO_KEY, []).extend(harvested)
    session.add_all(rows)

    for row in rows:
        outbox_messages_captured_total.labels(event_type=row.event_type).inc()
    logger.debug(
        "Captured notifications into outbox",
        extra={"count": len(rows), "aggregates": len(aggregates)},
    )


def _capture_before_commit(session: Session) -> None:
    """before_commit: harvest buffers the flush would skip on a clean session.

    ``commit`` only flushes when the session has changes, and recording a
    notification does not mark the aggregate dirty. Adding the rows here
    makes the session dirty, so commit's own flush writes them.
    """
    _capture_pending_notifications(session, None, None)


def _forget_staged(session: Session) -> None:
    """after_commit: the rows are durable, drop the rollback bookkeeping."""
    session.info.pop(_STAGED_INFO_KEY, None)


def _restore_uncommitted(session: Session, transaction: SessionTransaction) -> None:
    """after_transaction_end: give notifications back if nothing was committed."""
    if transaction.parent is not None:
        return

    staged = session.info.pop(_STAGED_INFO_KEY, None)
    if not staged:
        return

    # Restore newest harvest first so the oldest ends up at the front
    for aggregate, notifications in reversed(staged):
        aggregate.restore_notifications(notifications)

    logger.info(
        "Transaction ended without commit, restored pending notifications",
        extra={"count": sum(len(n) for _, n in staged)},
    )


def install_notification_capture(target: type[Session] = Session) -> None:
    """Register the capture listeners (idempotent).

    Registering on ``Session`` covers both sync sessions and the sync session
    wrapped by every ``AsyncSession``.
    """
    if event.contains(target, "before_flush", _capture_pending_notifications):
        return
    event.listen(target, "before_flush", _capture_pending_notifications)
    event.listen(target, "before_commit", _capture_before_commit)
    event.listen(target, "after_commit", _forget_staged)
    event.listen(target, "after_transaction_end", _restore_uncommitted)


def uninstall_notification_capture(target: type[Session] = Session) -> None:
    """Remove the capture listeners if present."""
    if not event.contains(target, "before_flush", _capture_pending_notifications):
        return
    event.remove(target, "before_flush", _capture_pending_notifications)
    event.remove(target, "before_commit", _capture_before_commit)
    event.remove(target, "after_commit", _forget_staged)
    event.remove(target, "after_transaction_end", _restore_uncommitted)


class NotificationPublisher:
    """Stage notifications in the outbox within the caller's transaction.

    Use this when a business operation returns the notifications it raised
    instead of recording them on an aggregate.

    Example:
        async with session.begin():
            notifications = user_service.deactivate(user, at=now)
            await NotificationPublisher(session).publish_many(notifications)
    """

    def __init__(self, session: Session | AsyncSession, clock: Clock | None = None) -> None:
        self._session = session
        self._clock = clock or resolve_clock(session)
        self._pending_count = 0

    @property
    def pending_count(self) -> int:
        """Rows staged through this publisher."""
        return self._pending_count

    async def publish(self, notification: DomainNotification) -> OutboxMessage:
        """Stage a single notification."""
        row = build_outbox_message(notification, self._clock())
        self._session.add(row)
        self._pending_count += 1
        outbox_messages_captured_total.labels(event_type=row.event_type).inc()
        return row

    async def publish_many(
        self, notifications: Iterable[DomainNotification]
    ) -> list[OutboxMessage]:
        """Stage several notifications sharing one capture timestamp."""
        now = self._clock()
        rows = [build_outbox_message(notification, now) for notification in notifications]
        if not rows:
            return rows
        self._session.add_all(rows)
        self._pending_count += len(rows)
        for row in rows:
            outbox_messages_captured_total.labels(event_type=row.event_type).inc()
        return rows
