"""Pytest configuration and shared fixtures.

Organization:
    - Environment: settings that keep tests off external infrastructure
    - Clock Fixtures: a controllable time source
    - Database Fixtures: in-memory SQLite engine, session factory and session
    - Utility Fixtures: cache resets between tests
"""

from __future__ import annotations

import os
from collections.abc import AsyncGenerator, Iterator
from datetime import UTC, datetime, timedelta

import pytest
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

# Ensure tests run without external infrastructure
os.environ.setdefault("DB_ENABLED", "false")
os.environ.setdefault("RABBIT_ENABLED", "false")
os.environ.setdefault("TASK_BROKER", "memory")
os.environ.setdefault("TASK_SCHEDULER_ENABLED", "false")
os.environ.setdefault("LOG_JSON", "false")

from relay_service.core.database.base import Base  # noqa: E402
from relay_service.core.settings import clear_all_caches  # noqa: E402
from relay_service.features.users.models import User  # noqa: E402, F401
from relay_service.infra.events.outbox.capture import (  # noqa: E402
    CLOCK_INFO_KEY,
    install_notification_capture,
)
from relay_service.infra.events.outbox.models import OutboxMessage  # noqa: E402, F401

# ============================================================================
# Clock Fixtures
# ============================================================================


class FakeClock:
    """Settable clock; call it like ``utc_now``."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    """Clock frozen at 2025-01-01 12:00 UTC."""
    return FakeClock(datetime(2025, 1, 1, 12, 0, tzinfo=UTC))


# ============================================================================
# Database Fixtures
# ============================================================================


@pytest.fixture(scope="session", autouse=True)
def _notification_capture() -> None:
    """Register the outbox capture listeners once for the whole run."""
    install_notification_capture()


@pytest.fixture
async def db_engine() -> AsyncGenerator[AsyncEngine]:
    """In-memory SQLite engine with the schema created.

    StaticPool keeps a single connection so every session sees the same
    in-memory database.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_factory(
    db_engine: AsyncEngine,
    clock: FakeClock,
) -> async_sessionmaker[AsyncSession]:
    """Session factory configured like the application's, with the fake clock."""
    return async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
        info={CLOCK_INFO_KEY: clock},
    )


@pytest.fixture
async def db_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession]:
    """A session bound to the in-memory database."""
    async with session_factory() as session:
        yield session


# ============================================================================
# Utility Fixtures
# ============================================================================


@pytest.fixture(autouse=True)
def _reset_caches() -> Iterator[None]:
    """Reload settings and drop process-wide singletons around each test."""
    from relay_service.app.container import reset_container
    from relay_service.infra.events.outbox.processor import reset_outbox_processor

    clear_all_caches()
    reset_container()
    reset_outbox_processor()
    yield
    clear_all_caches()
    reset_container()
    reset_outbox_processor()
