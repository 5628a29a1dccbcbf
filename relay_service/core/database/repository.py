"""Generic async repository with explicit session passing."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from sqlalchemy import select

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession
    from sqlalchemy.orm import InstrumentedAttribute

T = TypeVar("T")


class BaseRepository(Generic[T]):
    """Minimal generic repository for CRUD operations.

    Provides:
        - get(session, id) -> T | None
        - get_by(session, attr, value) -> T | None
        - create(session, instance) -> T
        - create_many(session, instances) -> Sequence[T]
        - delete(session, instance) -> None

    Session is always explicit - no hidden state. For queries not covered here,
    use the session directly.

    Example:
        class UserRepository(BaseRepository[User]):
            async def find_active(self, session: AsyncSession) -> Sequence[User]:
                stmt = select(User).where(User.deactivated_at.is_(None))
                result = await session.execute(stmt)
                return result.scalars().all()
    """

    __slots__ = ("model", "_logger")

    def __init__(self, model: type[T]) -> None:
        """Initialize repository with model class.

        Args:
            model: SQLAlchemy model class (e.g., User, OutboxMessage)
        """
        self.model = model
        self._logger = logging.getLogger(f"repository.{model.__name__}")

    async def get(self, session: AsyncSession, id: Any) -> T | None:  # noqa: A002
        """Get entity by primary key.

        Args:
            session: Database session
            id: Primary key value

        Returns:
            Entity if found, None otherwise
        """
        instance = await session.get(self.model, id)
        self._logger.debug(
            "db.get",
            extra={"entity": self.model.__name__, "id": str(id), "found": instance is not None},
        )
        return instance

    async def get_by(
        self,
        session: AsyncSession,
        attr: InstrumentedAttribute[Any],
        value: Any,
    ) -> T | None:
        """Get entity by arbitrary attribute.

        Example:
            user = await repo.get_by(session, User.user_name, "alice")
        """
        stmt = select(self.model).where(attr == value)
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    async def create(self, session: AsyncSession, instance: T) -> T:
        """Add a new entity and flush so generated values are populated."""
        session.add(instance)
        await session.flush()
        return instance

    async def create_many(self, session: AsyncSession, instances: Iterable[T]) -> Sequence[T]:
        """Add multiple entities and flush once."""
        instances_list = list(instances)
        session.add_all(instances_list)
        await session.flush()
        return instances_list

    async def delete(self, session: AsyncSession, instance: T) -> None:
        """Delete an entity."""
        entity_id = getattr(instance, "id", None)
        await session.delete(instance)
        await session.flush()

        self._logger.info(
            "Entity deleted",
            extra={"entity": self.model.__name__, "id": str(entity_id), "operation": "db.delete"},
        )
