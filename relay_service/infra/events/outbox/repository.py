"""Repository for OutboxMessage operations.

Provides methods for:
- Claiming pending rows for the poller (FOR UPDATE SKIP LOCKED)
- Recording enqueue success or failure on claimed rows
- Dead-letter inspection and requeue
- Cleaning up old processed rows
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import TYPE_CHECKING

from sqlalchemy import Select, delete, func, or_, select, update

from relay_service.core.database.repository import BaseRepository
from relay_service.infra.events.outbox.models import OutboxMessage

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sqlalchemy.ext.asyncio import AsyncSession

# Longer enqueue errors are truncated before storage
MAX_ERROR_LENGTH = 1000


class OutboxRepository(BaseRepository[OutboxMessage]):
    """Repository for outbox row operations.

    Claimed rows are mutated in memory by ``mark_processed`` and
    ``mark_failed``; the caller commits them in one batch.
    """

    def __init__(self) -> None:
        """Initialize repository with OutboxMessage model."""
        super().__init__(OutboxMessage)

    @staticmethod
    def build_claim_statement(
        *,
        now: datetime,
        batch_size: int,
        max_attempts: int = 0,
    ) -> Select[tuple[OutboxMessage]]:
        """Build the claim query.

        Selects up to ``batch_size`` unprocessed, due rows, oldest first,
        locking them and skipping rows another claimer already holds. On
        PostgreSQL this renders ``FOR UPDATE SKIP LOCKED``; dialects without
        row locks (SQLite) omit the clause.

        Args:
            now: Current time used for the next_attempt_at check.
            batch_size: Maximum number of rows to claim.
            max_attempts: Rows with this many failed enqueues are skipped.
                0 disables the ceiling.
        """
        stmt = select(OutboxMessage).where(
            OutboxMessage.processed_at.is_(None),
            or_(
                OutboxMessage.next_attempt_at.is_(None),
                OutboxMessage.next_attempt_at <= now,
            ),
        )
        if max_attempts > 0:
            stmt = stmt.where(OutboxMessage.retry_count < max_attempts)

        return (
            stmt.order_by(OutboxMessage.created_at.asc(), OutboxMessage.id.asc())
            .limit(batch_size)
            .with_for_update(skip_locked=True)
        )

    async def claim_pending(
        self,
        session: AsyncSession,
        *,
        now: datetime,
        batch_size: int = 20,
        max_attempts: int = 0,
    ) -> Sequence[OutboxMessage]:
        """Claim pending rows for the current transaction.

        The row locks are held until the session commits or rolls back.

        Returns:
            Claimed rows in created_at order
        """
        stmt = self.build_claim_statement(
            now=now,
            batch_size=batch_size,
            max_attempts=max_attempts,
        )
        result = await session.execute(stmt)
        return result.scalars().all()

    @staticmethod
    def mark_processed(message: OutboxMessage, *, now: datetime) -> None:
        """Record a successful hand-off to the job queue."""
        message.processed_at = now
        message.error = None

    @staticmethod
    def mark_failed(
        message: OutboxMessage,
        error: str,
        *,
        now: datetime,
        retry_delay_seconds: float = 0.0,
        max_retry_delay_seconds: float = 3600.0,
    ) -> None:
        """Record a failed enqueue; the row stays pending.

        When ``retry_delay_seconds`` is positive, uses exponential backoff:
        - 1st failure: base delay
        - 2nd failure: 2x base delay
        - 3rd failure: 4x base delay
        - capped at ``max_retry_delay_seconds``

        Args:
            message: Claimed row that failed to enqueue
            error: Description of the failure
            now: Current time
            retry_delay_seconds: Base delay; 0 leaves next_attempt_at untouched
            max_retry_delay_seconds: Upper bound for the delay
        """
        message.retry_count = (message.retry_count or 0) + 1
        message.error = error[:MAX_ERROR_LENGTH]

        if retry_delay_seconds > 0:
            backoff_multiplier = 2 ** (message.retry_count - 1)  # 1, 2, 4, 8, ...
            delay = min(retry_delay_seconds * backoff_multiplier, max_retry_delay_seconds)
            message.next_attempt_at = now + timedelta(seconds=delay)

    async def count_pending(self, session: AsyncSession) -> int:
        """Count rows waiting to be handed off (dead letters included)."""
        stmt = (
            select(func.count())
            .select_from(OutboxMessage)
            .where(OutboxMessage.processed_at.is_(None))
        )
        result = await session.execute(stmt)
        return result.scalar_one()

    async def count_dead_lettered(self, session: AsyncSession, *, max_attempts: int) -> int:
        """Count rows that reached the enqueue attempt ceiling.

        These are "dead letter" rows that need manual intervention.
        """
        if max_attempts <= 0:
            return 0

        stmt = (
            select(func.count())
            .select_from(OutboxMessage)
            .where(
                OutboxMessage.processed_at.is_(None),
                OutboxMessage.retry_count >= max_attempts,
            )
        )
        result = await session.execute(stmt)
        return result.scalar_one()

    async def list_dead_lettered(
        self,
        session: AsyncSession,
        *,
        max_attempts: int,
        limit: int = 100,
    ) -> Sequence[OutboxMessage]:
        """List dead-lettered rows, oldest first."""
        if max_attempts <= 0:
            return []

        stmt = (
            select(OutboxMessage)
            .where(
                OutboxMessage.processed_at.is_(None),
                OutboxMessage.retry_count >= max_attempts,
            )
            .order_by(OutboxMessage.created_at.asc())
            .limit(limit)
        )
        result = await session.execute(stmt)
        return result.scalars().all()

    async def requeue_dead_letters(self, session: AsyncSession, *, max_attempts: int) -> int:
        """Make dead-lettered rows claimable again.

        Resets the attempt counter and backoff; the last error is kept for
        diagnosis until the next attempt overwrites or clears it.

        Returns:
            Number of rows requeued
        """
        if max_attempts <= 0:
            return 0

        stmt = (
            update(OutboxMessage)
            .where(
                OutboxMessage.processed_at.is_(None),
                OutboxMessage.retry_count >= max_attempts,
            )
            .values(retry_count=0, next_attempt_at=None)
        )
        result = await session.execute(stmt)
        return result.rowcount or 0

    async def cleanup_processed(
        self,
        session: AsyncSession,
        *,
        now: datetime,
        older_than_days: int = 7,
    ) -> int:
        """Delete processed rows older than specified days.

        This is a maintenance operation to prevent the outbox table
        from growing indefinitely.

        Returns:
            Number of rows deleted
        """
        cutoff = now - timedelta(days=older_than_days)

        stmt = delete(OutboxMessage).where(
            OutboxMessage.processed_at.is_not(None),
            OutboxMessage.processed_at < cutoff,
        )
        result = await session.execute(stmt)
        return result.rowcount or 0


__all__ = ["MAX_ERROR_LENGTH", "OutboxRepository"]
