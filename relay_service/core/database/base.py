"""Base database model classes with composable mixins.

This module provides the foundation for SQLAlchemy models:
- UUID v7 primary keys (time-sortable)
- Timestamp tracking (created_at, updated_at)
- Consistent constraint naming for migrations

Examples:
    class User(Base, UUIDv7PKMixin, TimestampMixin):
        __tablename__ = "users"
        email: Mapped[str] = mapped_column(String(255))
"""

from __future__ import annotations

import os
import threading
import time
import uuid
from datetime import UTC, datetime

from sqlalchemy import DateTime, MetaData
from sqlalchemy.orm import DeclarativeBase, Mapped, declared_attr, mapped_column
from sqlalchemy.sql import func

# Consistent naming convention for database constraints
# Ensures predictable names for migrations and schema management
NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

_uuid7_lock = threading.Lock()
_last_uuid7: uuid.UUID | None = None


class Base(DeclarativeBase):
    """Declarative base with automatic table naming.

    The automatic table naming can be overridden by setting __tablename__
    explicitly on the model class.
    """

    metadata = MetaData(naming_convention=NAMING_CONVENTION)

    @declared_attr.directive
    def __tablename__(cls) -> str:
        """Auto-derive table name from class name (lowercase)."""
        return cls.__name__.lower()


def _build_uuid7(timestamp_ms: int, random_bytes: bytes) -> uuid.UUID:
    uuid_bytes = bytearray(16)
    uuid_bytes[0:6] = timestamp_ms.to_bytes(6, byteorder="big")
    uuid_bytes[6] = (random_bytes[0] & 0x0F) | 0x70  # Version 7
    uuid_bytes[7] = random_bytes[1]
    uuid_bytes[8] = (random_bytes[2] & 0x3F) | 0x80  # Variant
    uuid_bytes[9:16] = random_bytes[3:10]
    return uuid.UUID(bytes=bytes(uuid_bytes))


def generate_uuid7() -> uuid.UUID:
    """Generate a UUID v7, strictly increasing within this process.

    The first 48 bits carry the Unix timestamp in milliseconds. When two ids
    fall in the same millisecond (or the clock steps back) the previous id is
    incremented instead, so outbox rows captured in one flush sort by id in
    the order they were built.
    """
    global _last_uuid7

    with _uuid7_lock:
        candidate = _build_uuid7(int(time.time() * 1000), os.urandom(10))
        if _last_uuid7 is not None and candidate.int <= _last_uuid7.int:
            candidate = uuid.UUID(int=_last_uuid7.int + 1)
        _last_uuid7 = candidate
        return candidate


class UUIDv7PKMixin:
    """UUID v7 primary key (time-sortable).

    Provides:
        id: UUID v7 primary key, generated at insert time unless set explicitly
    """

    __allow_unmapped__ = True

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True,
        default=generate_uuid7,
        comment="UUID v7 primary key (time-sortable)",
    )


class TimestampMixin:
    """Timestamp tracking for create and update operations.

    Uses both Python-side defaults (for test environments) and database
    server defaults (for direct SQL inserts).
    """

    __allow_unmapped__ = True

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        server_default=func.now(),
        nullable=False,
        comment="Timestamp of record creation",
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        server_default=func.now(),
        onupdate=lambda: datetime.now(UTC),
        nullable=False,
        comment="Timestamp of last update",
    )
