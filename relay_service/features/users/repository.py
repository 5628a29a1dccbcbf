"""Repository for the users feature."""

from __future__ import annotations

from typing import TYPE_CHECKING

from relay_service.core.database import BaseRepository
from relay_service.features.users.models import User

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession


class UserRepository(BaseRepository[User]):
    """Repository for User entities."""

    def __init__(self) -> None:
        super().__init__(User)

    async def get_by_user_name(self, session: AsyncSession, user_name: str) -> User | None:
        return await self.get_by(session, User.user_name, user_name)


_user_repository: UserRepository | None = None


def get_user_repository() -> UserRepository:
    """Get UserRepository instance.

    Usage in handlers:
        repo = get_user_repository()
        user = await repo.get(session, user_id)
    """
    global _user_repository
    if _user_repository is None:
        _user_repository = UserRepository()
    return _user_repository
