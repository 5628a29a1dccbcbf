"""External collaborators of the users feature.

The search index and the mail sender are narrow protocols; the in-process
implementations here are what the service wires by default and what tests
use. Production deployments register real adapters in the container.
"""

from __future__ import annotations

import logging
from typing import Any, ClassVar, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict

logger = logging.getLogger(__name__)

SUPPORTED_LANGUAGES = ("pl", "en")


class UserDocument(BaseModel):
    """Search index document for a user."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    email: str


class EmailTemplate(BaseModel):
    """Base for templated emails.

    Subclasses define ``template_name`` and ``subject`` and expose the
    template parameters through ``parameters()``.
    """

    model_config = ConfigDict(frozen=True)

    template_name: ClassVar[str]
    language: str = "pl"

    @property
    def subject(self) -> str:
        raise NotImplementedError

    def parameters(self) -> dict[str, Any]:
        return self.model_dump(exclude={"language"})


class RegistrationEmail(EmailTemplate):
    """Welcome mail sent after registration."""

    template_name: ClassVar[str] = "UserRegistered"

    user_name: str
    application_name: str

    @property
    def subject(self) -> str:
        """Localized subject line.

        Raises:
            ValueError: For a language without a translation.
        """
        match self.language:
            case "en":
                return f"Welcome to {self.application_name}!"
            case "pl":
                return f"Witamy w {self.application_name}!"
            case _:
                msg = f"Subject not implemented for language '{self.language}'"
                raise ValueError(msg)


@runtime_checkable
class SearchIndex(Protocol):
    """User search index.

    Both operations are upserts/deletes by document id and must be safe to
    repeat.
    """

    async def index_document(self, document: UserDocument) -> bool: ...

    async def delete_document(self, document_id: str) -> bool: ...


@runtime_checkable
class EmailSender(Protocol):
    """Sends templated emails; raises on transport failure."""

    async def send_templated(self, send_to: str, template: EmailTemplate) -> None: ...


class InMemorySearchIndex:
    """Dictionary-backed search index."""

    def __init__(self) -> None:
        self.documents: dict[str, UserDocument] = {}

    async def index_document(self, document: UserDocument) -> bool:
        self.documents[document.id] = document
        logger.debug("Indexed user document", extra={"document_id": document.id})
        return True

    async def delete_document(self, document_id: str) -> bool:
        # Deleting a missing document counts as success
        self.documents.pop(document_id, None)
        logger.debug("Removed user document", extra={"document_id": document_id})
        return True


class LoggingEmailSender:
    """EmailSender that renders the subject and logs instead of sending."""

    async def send_templated(self, send_to: str, template: EmailTemplate) -> None:
        subject = template.subject
        logger.info(
            "Email sent",
            extra={
                "to": send_to,
                "template": template.template_name,
                "subject": subject,
                "language": template.language,
            },
        )
