"""Main CLI entry point for relay-service management commands."""

import click

from relay_service.cli.commands import outbox, run
from relay_service.infra.logging.config import setup_logging


@click.group()
@click.version_option(version="0.1.0", prog_name="relay-service")
@click.pass_context
def cli(ctx: click.Context) -> None:
    """Relay Service CLI - outbox relay operations.

    \b
    Commands:
      run        Start the broker and the outbox scheduler
      outbox     Inspect and operate the transactional outbox

    \b
    Quick Start:
      relay-service run                     # Run the relay
      relay-service outbox stats            # Pending and dead-letter counts
      relay-service outbox process          # Run one poll cycle now
    """
    ctx.ensure_object(dict)


cli.add_command(run.run)
cli.add_command(outbox.outbox)


def main() -> None:
    """Entry point for CLI."""
    setup_logging()
    cli(obj={})


if __name__ == "__main__":
    main()
