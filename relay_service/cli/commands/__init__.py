"""CLI command modules."""

from relay_service.cli.commands import outbox, run

__all__ = [
    "outbox",
    "run",
]
