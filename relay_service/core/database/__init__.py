"""Core database package: declarative base, mixins, column types and repository."""

from relay_service.core.database.base import (
    NAMING_CONVENTION,
    Base,
    TimestampMixin,
    UUIDv7PKMixin,
    generate_uuid7,
)
from relay_service.core.database.repository import BaseRepository
from relay_service.core.database.types import JSONPayload

__all__ = [
    "NAMING_CONVENTION",
    "Base",
    "BaseRepository",
    "JSONPayload",
    "TimestampMixin",
    "UUIDv7PKMixin",
    "generate_uuid7",
]
