"""Unit tests for the outbox CLI commands."""

from __future__ import annotations

import importlib
from contextlib import asynccontextmanager
from unittest.mock import AsyncMock, MagicMock

import pytest
from click.testing import CliRunner

from relay_service.cli.main import cli


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def session() -> MagicMock:
    session = MagicMock()
    session.commit = AsyncMock()
    return session


@pytest.fixture
def repository(monkeypatch, session) -> MagicMock:
    """Replace the session source and the repository used by the commands."""
    repo = MagicMock()
    repo.count_pending = AsyncMock(return_value=4)
    repo.count_dead_lettered = AsyncMock(return_value=1)
    repo.list_dead_lettered = AsyncMock(return_value=[])
    repo.requeue_dead_letters = AsyncMock(return_value=2)
    repo.cleanup_processed = AsyncMock(return_value=6)

    @asynccontextmanager
    async def fake_session():
        yield session

    monkeypatch.setattr("relay_service.infra.database.session.get_async_session", fake_session)
    monkeypatch.setattr(
        "relay_service.infra.events.outbox.repository.OutboxRepository", lambda: repo
    )
    return repo


@pytest.mark.unit
class TestCliGroup:
    """Tests for the top-level CLI."""

    def test_version(self, runner):
        """Test the version option."""
        result = runner.invoke(cli, ["--version"])

        assert result.exit_code == 0
        assert "relay-service, version 0.1.0" in result.output

    def test_help_lists_commands(self, runner):
        """Test that both command groups are registered."""
        result = runner.invoke(cli, ["--help"])

        assert "outbox" in result.output
        assert "run" in result.output


@pytest.mark.unit
class TestOutboxCommands:
    """Tests for relay-service outbox subcommands."""

    def test_stats(self, runner, repository):
        """Test that stats prints pending and dead-letter counts."""
        result = runner.invoke(cli, ["outbox", "stats"])

        assert result.exit_code == 0
        assert "Pending:       4" in result.output
        assert "Dead letters:  1" in result.output

    def test_stats_failure_exits_nonzero(self, runner, repository):
        """Test that a database error is reported with exit code 1."""
        repository.count_pending.side_effect = RuntimeError("connection refused")

        result = runner.invoke(cli, ["outbox", "stats"])

        assert result.exit_code == 1
        assert "connection refused" in result.output

    def test_dead_letters_empty(self, runner, repository):
        """Test the message when nothing is dead-lettered."""
        result = runner.invoke(cli, ["outbox", "dead-letters", "--limit", "5"])

        assert result.exit_code == 0
        assert "No dead letters" in result.output
        assert repository.list_dead_lettered.await_args.kwargs["limit"] == 5

    def test_requeue_requires_confirmation(self, runner, repository, session):
        """Test that declining the prompt changes nothing."""
        result = runner.invoke(cli, ["outbox", "requeue"], input="n\n")

        assert "Aborted" in result.output
        repository.requeue_dead_letters.assert_not_awaited()
        session.commit.assert_not_awaited()

    def test_requeue_with_yes_commits(self, runner, repository, session):
        """Test that --yes requeues and commits."""
        result = runner.invoke(cli, ["outbox", "requeue", "--yes"])

        assert result.exit_code == 0
        assert "Requeued 2 outbox messages" in result.output
        session.commit.assert_awaited_once()

    def test_cleanup_uses_configured_retention(self, runner, repository, session):
        """Test that cleanup defaults to OUTBOX_CLEANUP_OLDER_THAN_DAYS."""
        result = runner.invoke(cli, ["outbox", "cleanup"])

        assert result.exit_code == 0
        assert repository.cleanup_processed.await_args.kwargs["older_than_days"] == 7
        assert "Deleted 6 processed outbox messages older than 7 days" in result.output
        session.commit.assert_awaited_once()

    def test_cleanup_with_explicit_days(self, runner, repository):
        """Test the --older-than-days option."""
        result = runner.invoke(cli, ["outbox", "cleanup", "--older-than-days", "30"])

        assert result.exit_code == 0
        assert repository.cleanup_processed.await_args.kwargs["older_than_days"] == 30

    def test_process_runs_one_pass(self, runner, monkeypatch):
        """Test that process starts the broker, polls once and stops it."""
        processor = MagicMock()
        processor.process_pending = AsyncMock(return_value=3)
        start, stop = AsyncMock(), AsyncMock()
        monkeypatch.setattr(importlib.import_module("relay_service.infra.tasks.broker"), "start_taskiq", start)
        monkeypatch.setattr(importlib.import_module("relay_service.infra.tasks.broker"), "stop_taskiq", stop)
        monkeypatch.setattr(
            "relay_service.infra.events.outbox.processor.get_outbox_processor",
            lambda: processor,
        )

        result = runner.invoke(cli, ["outbox", "process"])

        assert result.exit_code == 0
        assert "Enqueued 3 outbox messages" in result.output
        start.assert_awaited_once()
        stop.assert_awaited_once()
