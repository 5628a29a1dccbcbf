"""Unit tests for the taskiq outbox task and the APScheduler poll job."""

from __future__ import annotations

import importlib
from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest

from relay_service.infra.tasks.broker import broker
from relay_service.infra.tasks.scheduler import (
    PROCESS_OUTBOX_JOB_ID,
    get_job_status,
    scheduler,
    setup_scheduled_jobs,
)
from relay_service.workers.outbox import PROCESS_EVENT_TASK_NAME, process_outbox_event

scheduler_module = importlib.import_module("relay_service.infra.tasks.scheduler")


@pytest.fixture
def job_executor(monkeypatch) -> MagicMock:
    executor = MagicMock()
    executor.process_event = AsyncMock()
    monkeypatch.setattr("relay_service.app.container.get_job_executor", lambda: executor)
    return executor


@pytest.mark.unit
class TestProcessOutboxEventTask:
    """Tests for the outbox.process_event task."""

    def test_task_declaration(self):
        """Test the task name and retry labels."""
        assert process_outbox_event.task_name == PROCESS_EVENT_TASK_NAME == "outbox.process_event"
        assert process_outbox_event.labels["retry_on_error"] is True
        assert process_outbox_event.labels["max_retries"] == 5

    def test_task_is_registered_with_broker(self):
        """Test that the worker can find the task by name."""
        assert broker.find_task(PROCESS_EVENT_TASK_NAME) is not None

    @pytest.mark.asyncio
    async def test_direct_call_delegates_to_executor(self, job_executor):
        """Test that the task body hands the pair to the job executor."""
        await process_outbox_event("users.UserDeactivated", '{"user_id": "x"}')

        job_executor.process_event.assert_awaited_once_with(
            "users.UserDeactivated", '{"user_id": "x"}'
        )

    @pytest.mark.asyncio
    async def test_executor_errors_fail_the_task(self, job_executor):
        """Test that executor exceptions propagate to the queue."""
        job_executor.process_event.side_effect = RuntimeError("handler failed")

        with pytest.raises(RuntimeError):
            await process_outbox_event("users.UserDeactivated", "{}")

    @pytest.mark.asyncio
    async def test_kiq_runs_on_memory_broker(self, job_executor):
        """Test an enqueue through the in-memory broker end to end."""
        await broker.startup()
        try:
            handle = await process_outbox_event.kiq(
                event_type="users.UserDeactivated",
                event_payload="{}",
            )
            result = await handle.wait_result(timeout=5)
        finally:
            await broker.shutdown()

        assert not result.is_err
        job_executor.process_event.assert_awaited_with("users.UserDeactivated", "{}")


@pytest.mark.unit
class TestScheduler:
    """Tests for the scheduled outbox poll."""

    @pytest.fixture(autouse=True)
    def _clean_scheduler(self):
        scheduler.remove_all_jobs()
        yield
        scheduler.remove_all_jobs()

    def test_setup_registers_interval_job(self, monkeypatch):
        """Test that the poll job uses the configured interval."""
        monkeypatch.setenv("OUTBOX_POLL_INTERVAL_SECONDS", "5")

        setup_scheduled_jobs()

        job = scheduler.get_job(PROCESS_OUTBOX_JOB_ID)
        assert job is not None
        assert job.trigger.interval == timedelta(seconds=5)

    def test_setup_twice_replaces_job(self):
        """Test that repeated setup keeps a single poll job."""
        setup_scheduled_jobs()
        setup_scheduled_jobs()

        assert [s["id"] for s in get_job_status()] == [PROCESS_OUTBOX_JOB_ID]

    def test_job_status_before_start(self):
        """Test that pending jobs report no next run time."""
        setup_scheduled_jobs()

        (status,) = get_job_status()

        assert status["name"] == "Process pending outbox messages"
        assert status["next_run_time"] is None

    @pytest.mark.asyncio
    async def test_job_runs_one_processor_pass(self, monkeypatch):
        """Test that the job body runs the global poller once."""
        processor = MagicMock()
        processor.process_pending = AsyncMock(return_value=3)
        monkeypatch.setattr(
            "relay_service.infra.events.outbox.processor.get_outbox_processor",
            lambda: processor,
        )

        await scheduler_module._process_outbox()

        processor.process_pending.assert_awaited_once()
