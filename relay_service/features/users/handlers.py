"""Notification handlers for the users feature.

Handlers run inside outbox jobs and may run more than once for the same
notification, so each one is idempotent: indexing upserts by user id,
deleting a missing document succeeds, and a repeated welcome mail is
accepted as the cost of at-least-once delivery.
"""

from __future__ import annotations

import logging

from relay_service.core.mediator import Result
from relay_service.features.users.notifications import UserDeactivated, UserRegistered
from relay_service.features.users.services import (
    EmailSender,
    RegistrationEmail,
    SearchIndex,
    UserDocument,
)

logger = logging.getLogger(__name__)


class IndexRegisteredUserHandler:
    """Add a newly registered user to the search index."""

    def __init__(self, search_index: SearchIndex) -> None:
        self._search_index = search_index

    async def handle(self, notification: UserRegistered) -> Result[None]:
        document = UserDocument(
            id=str(notification.user_id),
            name=notification.name,
            email=notification.email,
        )
        if not await self._search_index.index_document(document):
            logger.error("Could not index user", extra={"user_id": document.id})
            return Result.fail("Could not index user")
        return Result.ok()


class SendRegistrationEmailHandler:
    """Send the welcome mail to a newly registered user."""

    def __init__(self, email_sender: EmailSender, application_name: str) -> None:
        self._email_sender = email_sender
        self._application_name = application_name

    async def handle(self, notification: UserRegistered) -> Result[None]:
        try:
            template = RegistrationEmail(
                user_name=notification.name,
                application_name=self._application_name,
                language=notification.language,
            )
            await self._email_sender.send_templated(notification.email, template)
        except Exception as e:
            logger.exception(
                "Failed to send registration email",
                extra={"user_id": str(notification.user_id)},
            )
            return Result.fail(str(e))
        return Result.ok()


class RemoveDeactivatedUserFromIndexHandler:
    """Remove a deactivated user from the search index."""

    def __init__(self, search_index: SearchIndex) -> None:
        self._search_index = search_index

    async def handle(self, notification: UserDeactivated) -> Result[None]:
        document_id = str(notification.user_id)
        if not await self._search_index.delete_document(document_id):
            logger.error("Could not remove user from index", extra={"user_id": document_id})
            return Result.fail("Could not remove user from index")
        return Result.ok()
