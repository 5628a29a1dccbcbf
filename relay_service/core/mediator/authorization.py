"""Authorization policies for mediator messages."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Flag, auto
from typing import TYPE_CHECKING, TypeVar
from uuid import UUID

if TYPE_CHECKING:
    from collections.abc import Callable

T = TypeVar("T", bound=type)

POLICY_ATTR = "__authorize_policy__"


class AuthorizePolicy(Flag):
    """Who may send a message.

    NONE and USER admit any authenticated caller; ADMIN requires an admin.
    """

    NONE = 0
    USER = auto()
    ADMIN = auto()


@dataclass(frozen=True)
class CurrentUser:
    """Identity of the caller on whose behalf a message is dispatched."""

    user_id: UUID | None = None
    user_name: str = ""
    email: str = ""
    is_authenticated: bool = False
    is_admin: bool = False
    language: str = "pl"


ANONYMOUS = CurrentUser()


def authorize(policy: AuthorizePolicy = AuthorizePolicy.NONE) -> Callable[[T], T]:
    """Class decorator declaring the policy a message requires.

    Example:
        @authorize(AuthorizePolicy.ADMIN)
        @dataclass(frozen=True)
        class DeactivateUser:
            user_id: UUID
    """

    def decorator(cls: T) -> T:
        setattr(cls, POLICY_ATTR, policy)
        return cls

    return decorator


def get_policy(message_type: type) -> AuthorizePolicy | None:
    """Return the declared policy, or None when the type is unrestricted."""
    return getattr(message_type, POLICY_ATTR, None)


def is_authorized(policy: AuthorizePolicy | None, user: CurrentUser) -> bool:
    """Evaluate a policy against the caller."""
    if policy is None:
        return True
    if not user.is_authenticated:
        return False
    if AuthorizePolicy.ADMIN in policy:
        return user.is_admin
    return True
