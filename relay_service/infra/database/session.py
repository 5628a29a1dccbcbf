"""Database session management with psycopg3 async driver."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from relay_service.core.settings import get_app_settings, get_db_settings
from relay_service.infra.events.outbox.capture import install_notification_capture

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

logger = logging.getLogger(__name__)

SQLITE_FALLBACK_URL = "sqlite+aiosqlite:///./relay.db"

# Get settings from modular configuration
db_settings = get_db_settings()
app_settings = get_app_settings()

if db_settings.is_configured:
    engine = create_async_engine(
        db_settings.get_sqlalchemy_url(),
        **{
            **db_settings.sqlalchemy_engine_kwargs(),
            "echo": db_settings.echo or app_settings.debug,
        },
    )
else:
    engine = create_async_engine(SQLITE_FALLBACK_URL, echo=app_settings.debug)

# Create session factory
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)

# Pending notifications on aggregates become outbox rows on every flush
install_notification_capture()


def _safe_url() -> str:
    return engine.url.render_as_string(hide_password=True)


@asynccontextmanager
async def get_async_session() -> AsyncGenerator[AsyncSession]:
    """Get async database session.

    Yields:
        Database session that is automatically closed.

    Example:
        async with get_async_session() as session:
            result = await session.execute(select(User))
            users = result.scalars().all()
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()


async def init_database() -> None:
    """Verify the database is reachable.

    Raises:
        sqlalchemy.exc.SQLAlchemyError: If the connection check fails.
    """
    logger.info("Initializing database connection", extra={"url": _safe_url()})

    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        logger.error(
            "Failed to connect to database",
            extra={"url": _safe_url(), "error": str(e)},
        )
        raise

    logger.info("Database connection established successfully", extra={"url": _safe_url()})


async def close_database() -> None:
    """Close database connection and cleanup resources.

    This should be called during application shutdown.
    """
    logger.info("Closing database connection")
    await engine.dispose()
    logger.info("Database connection closed successfully")


__all__ = [
    "AsyncSessionLocal",
    "close_database",
    "engine",
    "get_async_session",
    "init_database",
]
