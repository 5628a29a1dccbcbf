"""Users feature package."""

from .commands import (
    DeactivateUser,
    DeactivateUserHandler,
    DeactivateUserValidator,
    RegisterUser,
    RegisterUserHandler,
    RegisterUserValidator,
)
from .handlers import (
    IndexRegisteredUserHandler,
    RemoveDeactivatedUserFromIndexHandler,
    SendRegistrationEmailHandler,
)
from .models import User
from .notifications import UserDeactivated, UserRegistered
from .repository import UserRepository, get_user_repository
from .services import (
    EmailSender,
    InMemorySearchIndex,
    LoggingEmailSender,
    RegistrationEmail,
    SearchIndex,
    UserDocument,
)

__all__ = [
    "DeactivateUser",
    "DeactivateUserHandler",
    "DeactivateUserValidator",
    "EmailSender",
    "InMemorySearchIndex",
    "IndexRegisteredUserHandler",
    "LoggingEmailSender",
    "RegisterUser",
    "RegisterUserHandler",
    "RegisterUserValidator",
    "RegistrationEmail",
    "RemoveDeactivatedUserFromIndexHandler",
    "SearchIndex",
    "SendRegistrationEmailHandler",
    "User",
    "UserDeactivated",
    "UserDocument",
    "UserRegistered",
    "UserRepository",
    "get_user_repository",
]
