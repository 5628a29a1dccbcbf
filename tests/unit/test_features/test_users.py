"""Unit tests for the users feature."""

from __future__ import annotations

import json
import logging
from datetime import timedelta
from uuid import UUID, uuid4

import pytest
from sqlalchemy import select

from relay_service.app.container import build_mediator
from relay_service.core.mediator import (
    ConflictError,
    CurrentUser,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from relay_service.features.users import (
    DeactivateUser,
    InMemorySearchIndex,
    LoggingEmailSender,
    RegisterUser,
    RegistrationEmail,
    RemoveDeactivatedUserFromIndexHandler,
    SendRegistrationEmailHandler,
    User,
    UserDeactivated,
    UserRegistered,
    get_user_repository,
)
from relay_service.features.users.commands import NIL_UUID
from relay_service.infra.events.outbox import OutboxMessage

ADMIN = CurrentUser(user_id=uuid4(), user_name="root", is_authenticated=True, is_admin=True)


async def outbox_types(session_factory) -> list[str]:
    async with session_factory() as session:
        result = await session.execute(
            select(OutboxMessage).order_by(OutboxMessage.created_at, OutboxMessage.id)
        )
        return [row.event_type for row in result.scalars()]


@pytest.fixture
def mediator(session_factory, clock):
    return build_mediator(session_factory=session_factory, user_provider=lambda: ADMIN, clock=clock)


# ──────────────────────────────────────────────────────────────
# Model
# ──────────────────────────────────────────────────────────────


@pytest.mark.unit
class TestUserModel:
    """Tests for the User aggregate."""

    def test_create_records_registration(self):
        """Test that a new user with an email raises UserRegistered."""
        user = User.create("alice", "alice@example.com", "en")

        assert isinstance(user.id, UUID)
        assert user.is_active
        (notification,) = user.pending_notifications
        assert notification == UserRegistered(
            user_id=user.id, name="alice", email="alice@example.com", language="en"
        )

    def test_create_without_email_records_nothing(self):
        """Test that a blank email skips the registration notification."""
        assert User.create("bob", "  ").pending_notifications == ()
        assert User.create("bob", None).pending_notifications == ()

    def test_deactivate_once(self, clock):
        """Test that deactivation is recorded only the first time."""
        user = User.create("carol", None)

        assert user.deactivate(clock()) is True
        assert user.deactivate(clock() + timedelta(days=1)) is False
        assert user.deactivated_at == clock.now
        assert not user.is_active
        assert user.pending_notifications == (UserDeactivated(user_id=user.id),)


# ──────────────────────────────────────────────────────────────
# Services
# ──────────────────────────────────────────────────────────────


@pytest.mark.unit
class TestRegistrationEmail:
    """Tests for the registration email template."""

    @pytest.mark.parametrize(
        ("language", "subject"),
        [("en", "Welcome to Relay!"), ("pl", "Witamy w Relay!")],
    )
    def test_subject_is_localized(self, language, subject):
        """Test the subject line per supported language."""
        email = RegistrationEmail(user_name="a", application_name="Relay", language=language)

        assert email.subject == subject

    def test_unknown_language_raises(self):
        """Test that a language without translation is rejected."""
        email = RegistrationEmail(user_name="a", application_name="Relay", language="de")

        with pytest.raises(ValueError, match="not implemented"):
            _ = email.subject

    def test_parameters(self):
        """Test the template parameters handed to the sender."""
        email = RegistrationEmail(user_name="a", application_name="Relay", language="en")

        assert email.parameters() == {"user_name": "a", "application_name": "Relay"}


@pytest.mark.unit
class TestLoggingEmailSender:
    """Tests for the default mail sender."""

    @pytest.mark.asyncio
    async def test_logs_without_keeping_messages(self, caplog):
        """Test that sending only logs, so a long-running worker holds no mail."""
        sender = LoggingEmailSender()
        email = RegistrationEmail(user_name="a", application_name="Relay", language="en")

        with caplog.at_level(logging.INFO, logger="relay_service.features.users.services"):
            for _ in range(3):
                await sender.send_templated("a@example.com", email)

        sent = [r for r in caplog.records if r.getMessage() == "Email sent"]
        assert len(sent) == 3
        assert sent[0].to == "a@example.com"
        assert vars(sender) == {}


@pytest.mark.unit
class TestNotificationHandlers:
    """Tests for the users notification handlers."""

    @pytest.mark.asyncio
    async def test_email_failure_becomes_failed_result(self):
        """Test that a sender error is reported, not raised."""
        handler = SendRegistrationEmailHandler(LoggingEmailSender(), "Relay")
        notification = UserRegistered(
            user_id=uuid4(), name="a", email="a@example.com", language="de"
        )

        result = await handler.handle(notification)

        assert result.is_failed
        assert "not implemented" in result.error_message

    @pytest.mark.asyncio
    async def test_removing_missing_document_succeeds(self):
        """Test that deleting an unknown user from the index is not an error."""
        handler = RemoveDeactivatedUserFromIndexHandler(InMemorySearchIndex())

        result = await handler.handle(UserDeactivated(user_id=uuid4()))

        assert result.is_success


# ──────────────────────────────────────────────────────────────
# Commands
# ──────────────────────────────────────────────────────────────


@pytest.mark.unit
class TestRegisterUser:
    """Tests for the RegisterUser command."""

    @pytest.mark.asyncio
    async def test_register_stores_user_and_outbox_row(self, mediator, session_factory):
        """Test that registration commits the user and its notification together."""
        result = await mediator.send(RegisterUser("alice", "alice@example.com", "en"))

        assert result.is_success
        async with session_factory() as session:
            user = await get_user_repository().get(session, result.value)
            row = (await session.execute(select(OutboxMessage))).scalar_one()
        assert user.user_name == "alice"
        assert row.event_type == "users.UserRegistered"
        assert json.loads(row.event_payload)["user_id"] == str(result.value)

    @pytest.mark.asyncio
    async def test_duplicate_user_name_conflicts(self, mediator, session_factory):
        """Test that a taken name is rejected without a second outbox row."""
        await mediator.send(RegisterUser("alice", "alice@example.com"))

        result = await mediator.send(RegisterUser("alice", "other@example.com"))

        assert result.has_error(ConflictError)
        assert result.error_message == "User name 'alice' is already taken"
        assert await outbox_types(session_factory) == ["users.UserRegistered"]

    @pytest.mark.asyncio
    async def test_invalid_command_is_rejected(self, mediator, session_factory):
        """Test that all validation failures are reported together."""
        result = await mediator.send(RegisterUser("", "not-an-email", "de"))

        assert result.has_error(ValidationError)
        assert result.error_message == (
            "User name is required, Email must be a valid email address, "
            "Language must be one of: pl, en"
        )
        assert await outbox_types(session_factory) == []


@pytest.mark.unit
class TestDeactivateUser:
    """Tests for the DeactivateUser command."""

    @pytest.mark.asyncio
    async def test_deactivate_records_notification(self, mediator, session_factory, clock):
        """Test that deactivation stores UserDeactivated after UserRegistered."""
        user_id = (await mediator.send(RegisterUser("alice", "alice@example.com"))).value

        result = await mediator.send(DeactivateUser(user_id))

        assert result.is_success
        assert await outbox_types(session_factory) == [
            "users.UserRegistered",
            "users.UserDeactivated",
        ]
        async with session_factory() as session:
            user = await get_user_repository().get(session, user_id)
        assert user.deactivated_at.replace(tzinfo=None) == clock.now.replace(tzinfo=None)

    @pytest.mark.asyncio
    async def test_second_deactivation_conflicts(self, mediator, session_factory):
        """Test that deactivating twice fails without a second notification."""
        user_id = (await mediator.send(RegisterUser("alice", "alice@example.com"))).value
        await mediator.send(DeactivateUser(user_id))

        result = await mediator.send(DeactivateUser(user_id))

        assert result.has_error(ConflictError)
        assert (await outbox_types(session_factory)).count("users.UserDeactivated") == 1

    @pytest.mark.asyncio
    async def test_unknown_user_not_found(self, mediator):
        """Test that a missing user is a NotFound failure."""
        result = await mediator.send(DeactivateUser(uuid4()))

        assert result.has_error(NotFoundError)

    @pytest.mark.asyncio
    async def test_nil_id_fails_validation(self, mediator):
        """Test that the nil UUID is rejected by the validator."""
        result = await mediator.send(DeactivateUser(NIL_UUID))

        assert result.has_error(ValidationError)
        assert result.error_message == "User id is required"

    @pytest.mark.asyncio
    async def test_requires_admin(self, session_factory):
        """Test that a non-admin caller is unauthorized."""
        member = CurrentUser(user_id=uuid4(), is_authenticated=True)
        mediator = build_mediator(session_factory=session_factory, user_provider=lambda: member)

        result = await mediator.send(DeactivateUser(uuid4()))

        assert result.has_error(UnauthorizedError)
