"""Concurrent outbox claims against PostgreSQL row locks."""

from __future__ import annotations

import asyncio
from datetime import timedelta

import pytest
from sqlalchemy import select

from relay_service.infra.events.outbox import OutboxMessage, OutboxRepository

ROW_COUNT = 5


async def seed_pending(session_factory, clock) -> list:
    async with session_factory() as session:
        rows = [
            OutboxMessage(
                event_type="tests.Something",
                event_payload=f'{{"n": {n}}}',
                created_at=clock() + timedelta(seconds=n),
                retry_count=0,
            )
            for n in range(ROW_COUNT)
        ]
        session.add_all(rows)
        await session.commit()
        return [row.id for row in rows]


@pytest.mark.integration
class TestConcurrentClaims:
    """Tests for SKIP LOCKED partitioning between pollers."""

    @pytest.mark.asyncio
    async def test_open_claim_hides_rows_from_second_claimer(self, pg_session_factory, clock):
        """Test that a second poller only sees rows the first did not lock."""
        ids = await seed_pending(pg_session_factory, clock)
        repository = OutboxRepository()

        async with pg_session_factory() as first, pg_session_factory() as second:
            now = clock.advance(minutes=1)
            first_rows = await repository.claim_pending(first, now=now, batch_size=2)
            second_rows = await repository.claim_pending(second, now=now, batch_size=10)

            assert [r.id for r in first_rows] == ids[:2]
            assert [r.id for r in second_rows] == ids[2:]
            await first.rollback()
            await second.rollback()

    @pytest.mark.asyncio
    async def test_simultaneous_claims_are_disjoint(self, pg_session_factory, clock):
        """Test that pollers claiming at once split the rows with no overlap."""
        await seed_pending(pg_session_factory, clock)
        repository = OutboxRepository()
        now = clock.advance(minutes=1)

        async with pg_session_factory() as first, pg_session_factory() as second:
            claims = await asyncio.gather(
                repository.claim_pending(first, now=now, batch_size=3),
                repository.claim_pending(second, now=now, batch_size=3),
            )
            for session, rows in zip((first, second), claims, strict=True):
                for row in rows:
                    OutboxRepository.mark_processed(row, now=now)
                await session.commit()

        first_ids, second_ids = ({row.id for row in rows} for rows in claims)
        assert first_ids.isdisjoint(second_ids)
        assert len(first_ids | second_ids) == ROW_COUNT

        async with pg_session_factory() as session:
            pending = await session.execute(
                select(OutboxMessage).where(OutboxMessage.processed_at.is_(None))
            )
            assert pending.scalars().all() == []
