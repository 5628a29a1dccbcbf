"""Unit tests for JobExecutor."""

from __future__ import annotations

import json
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest

from relay_service.app.container import build_mediator
from relay_service.core.exceptions import EventDeserializationError, EventProcessingError
from relay_service.core.mediator import Result
from relay_service.features.users import (
    EmailSender,
    InMemorySearchIndex,
    UserDeactivated,
    UserDocument,
    UserRegistered,
)
from relay_service.infra.events.outbox import JobExecutor
from relay_service.infra.logging.context import (
    clear_log_context,
    get_log_context,
    set_log_context,
)
from relay_service.infra.metrics.prometheus import REGISTRY


def registered_payload(user_id=None) -> str:
    return UserRegistered(
        user_id=user_id or uuid4(),
        name="alice",
        email="alice@example.com",
        language="en",
    ).to_payload()


@pytest.fixture
def mediator() -> MagicMock:
    mediator = MagicMock()
    mediator.publish = AsyncMock(return_value=Result.ok())
    return mediator


@pytest.mark.unit
class TestProcessEvent:
    """Tests for JobExecutor.process_event with a stubbed mediator."""

    @pytest.mark.asyncio
    async def test_publishes_deserialized_notification(self, mediator):
        """Test that the payload is rebuilt into its notification class."""
        user_id = uuid4()

        await JobExecutor(mediator).process_event(
            "users.UserRegistered", registered_payload(user_id)
        )

        mediator.publish.assert_awaited_once()
        notification = mediator.publish.await_args.args[0]
        assert isinstance(notification, UserRegistered)
        assert notification.user_id == user_id
        assert notification.language == "en"

    @pytest.mark.asyncio
    async def test_unknown_type_raises_without_publishing(self, mediator):
        """Test that an unregistered type is a deserialization error."""
        with pytest.raises(EventDeserializationError) as exc_info:
            await JobExecutor(mediator).process_event("users.Unknown", "{}")

        assert str(exc_info.value) == "Could not deserialize event of type 'users.Unknown'."
        mediator.publish.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_malformed_payload_raises(self, mediator):
        """Test that a payload not matching the schema is a deserialization error."""
        with pytest.raises(EventDeserializationError):
            await JobExecutor(mediator).process_event("users.UserDeactivated", '{"nope": 1}')

        mediator.publish.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_failed_result_raises_processing_error(self, mediator):
        """Test that a failed publish result fails the job."""
        mediator.publish.return_value = Result.fail("boom")

        with pytest.raises(EventProcessingError) as exc_info:
            await JobExecutor(mediator).process_event(
                "users.UserRegistered", registered_payload()
            )

        assert str(exc_info.value) == (
            "Processing of event type 'users.UserRegistered' failed: boom"
        )
        assert exc_info.value.extra["event_type"] == "users.UserRegistered"

    @pytest.mark.asyncio
    async def test_outcomes_are_counted(self, mediator):
        """Test that succeeded and failed jobs are recorded per event type."""
        labels = {"event_type": "users.UserDeactivated"}

        def count(status: str) -> float:
            value = REGISTRY.get_sample_value(
                "relay_outbox_events_processed_total", {**labels, "status": status}
            )
            return value or 0.0

        succeeded, failed = count("succeeded"), count("failed")
        payload = json.dumps({"user_id": str(uuid4())})

        await JobExecutor(mediator).process_event("users.UserDeactivated", payload)
        mediator.publish.return_value = Result.fail("boom")
        with pytest.raises(EventProcessingError):
            await JobExecutor(mediator).process_event("users.UserDeactivated", payload)

        assert count("succeeded") == succeeded + 1
        assert count("failed") == failed + 1

    @pytest.mark.asyncio
    async def test_log_context_is_cleared(self, mediator):
        """Test that per-job log context does not leak after the job."""
        await JobExecutor(mediator).process_event("users.UserRegistered", registered_payload())

        assert get_log_context() == {}

    @pytest.mark.asyncio
    async def test_caller_log_context_is_restored(self, mediator):
        """Test that fields set before the job survive it, even when it fails."""
        set_log_context(worker="w-1", event_type="outer")
        mediator.publish.return_value = Result.fail("boom")
        try:
            with pytest.raises(EventProcessingError):
                await JobExecutor(mediator).process_event(
                    "users.UserRegistered", registered_payload()
                )

            assert get_log_context() == {"worker": "w-1", "event_type": "outer"}
        finally:
            clear_log_context()


class FailingSearchIndex(InMemorySearchIndex):
    async def index_document(self, document: UserDocument) -> bool:
        return False


@pytest.mark.unit
class TestProcessEventEndToEnd:
    """Tests running jobs through the real mediator and user handlers."""

    @pytest.mark.asyncio
    async def test_registered_user_is_indexed_and_emailed(self, session_factory):
        """Test that all UserRegistered handlers run."""
        index, sender = InMemorySearchIndex(), AsyncMock(spec=EmailSender)
        executor = JobExecutor(
            build_mediator(session_factory=session_factory, search_index=index, email_sender=sender)
        )
        user_id = uuid4()

        await executor.process_event("users.UserRegistered", registered_payload(user_id))

        assert index.documents[str(user_id)].email == "alice@example.com"
        sender.send_templated.assert_awaited_once()
        send_to, template = sender.send_templated.await_args.args
        assert send_to == "alice@example.com"
        assert template.subject == "Welcome to relay-service!"

    @pytest.mark.asyncio
    async def test_redelivery_is_idempotent(self, session_factory):
        """Test that running the same job twice leaves one indexed document."""
        index = InMemorySearchIndex()
        executor = JobExecutor(
            build_mediator(session_factory=session_factory, search_index=index)
        )
        payload = registered_payload()

        await executor.process_event("users.UserRegistered", payload)
        await executor.process_event("users.UserRegistered", payload)

        assert len(index.documents) == 1

    @pytest.mark.asyncio
    async def test_index_failure_skips_email(self, session_factory):
        """Test that a failing handler stops later handlers and fails the job."""
        sender = AsyncMock(spec=EmailSender)
        executor = JobExecutor(
            build_mediator(
                session_factory=session_factory,
                search_index=FailingSearchIndex(),
                email_sender=sender,
            )
        )

        with pytest.raises(EventProcessingError, match="Could not index user"):
            await executor.process_event("users.UserRegistered", registered_payload())

        sender.send_templated.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_deactivated_user_is_removed_from_index(self, session_factory):
        """Test the UserDeactivated handler, including a missing document."""
        index = InMemorySearchIndex()
        executor = JobExecutor(
            build_mediator(session_factory=session_factory, search_index=index)
        )
        user_id = uuid4()
        await executor.process_event("users.UserRegistered", registered_payload(user_id))

        payload = json.dumps({"user_id": str(user_id)})
        await executor.process_event(UserDeactivated.event_type, payload)
        await executor.process_event(UserDeactivated.event_type, payload)

        assert str(user_id) not in index.documents
