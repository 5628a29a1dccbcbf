"""Commands of the users feature, dispatched through ``Mediator.send``.

Each command handler opens its own unit of work. Committing it flushes the
aggregate, which captures the recorded notification into the outbox in the
same transaction.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy.exc import IntegrityError

from relay_service.core.clock import Clock, utc_now
from relay_service.core.mediator import (
    AuthorizePolicy,
    ConflictError,
    NotFoundError,
    Result,
    authorize,
)
from relay_service.features.users.models import DEFAULT_LANGUAGE, User
from relay_service.features.users.repository import UserRepository, get_user_repository
from relay_service.features.users.services import SUPPORTED_LANGUAGES

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

logger = logging.getLogger(__name__)

NIL_UUID = UUID(int=0)


@dataclass(frozen=True, slots=True)
class RegisterUser:
    user_name: str
    email: str
    language: str = DEFAULT_LANGUAGE


@authorize(AuthorizePolicy.ADMIN)
@dataclass(frozen=True, slots=True)
class DeactivateUser:
    user_id: UUID


class RegisterUserValidator:
    async def validate(self, command: RegisterUser) -> list[str]:
        errors = []
        if not command.user_name or not command.user_name.strip():
            errors.append("User name is required")
        if "@" not in (command.email or ""):
            errors.append("Email must be a valid email address")
        if command.language not in SUPPORTED_LANGUAGES:
            errors.append(f"Language must be one of: {', '.join(SUPPORTED_LANGUAGES)}")
        return errors


class DeactivateUserValidator:
    async def validate(self, command: DeactivateUser) -> list[str]:
        if command.user_id == NIL_UUID:
            return ["User id is required"]
        return []


class RegisterUserHandler:
    """Create a user; the commit captures ``UserRegistered``."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        repository: UserRepository | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._repository = repository or get_user_repository()

    async def handle(self, command: RegisterUser) -> Result[UUID]:
        async with self._session_factory() as session:
            if await self._repository.get_by_user_name(session, command.user_name) is not None:
                return Result.fail(
                    ConflictError(f"User name '{command.user_name}' is already taken")
                )

            user = User.create(command.user_name, command.email, command.language)
            user_id = user.id
            try:
                await self._repository.create(session, user)
                await session.commit()
            except IntegrityError:
                # Lost a race with a concurrent registration
                await session.rollback()
                return Result.fail(
                    ConflictError(f"User name '{command.user_name}' is already taken")
                )

        logger.info(
            "User registered",
            extra={"user_id": str(user_id), "operation": "users.register"},
        )
        return Result.ok(user_id)


class DeactivateUserHandler:
    """Deactivate a user; the commit captures ``UserDeactivated``."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        repository: UserRepository | None = None,
        clock: Clock = utc_now,
    ) -> None:
        self._session_factory = session_factory
        self._repository = repository or get_user_repository()
        self._clock = clock

    async def handle(self, command: DeactivateUser) -> Result[UUID]:
        async with self._session_factory() as session:
            user = await self._repository.get(session, command.user_id)
            if user is None:
                return Result.fail(NotFoundError("User not found"))

            if not user.deactivate(self._clock()):
                return Result.fail(ConflictError("User is already deactivated"))

            await session.commit()

        logger.info(
            "User deactivated",
            extra={"user_id": str(command.user_id), "operation": "users.deactivate"},
        )
        return Result.ok(command.user_id)
