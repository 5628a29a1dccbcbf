"""Service run command."""

from __future__ import annotations

import asyncio
import signal
import sys

import click

from relay_service.cli.utils import coro, error, info, success


@click.command(name="run")
@coro
async def run() -> None:
    """Start the broker and the outbox scheduler and run until interrupted.

    \b
    Jobs are executed by a taskiq worker:
      taskiq worker relay_service.infra.tasks.broker:broker
    With TASK_BROKER=memory they run inside this process instead.
    """
    from relay_service.app.lifespan import lifespan

    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop.set)

    try:
        async with lifespan():
            success("Relay service running, press Ctrl+C to stop")
            await stop.wait()
            info("Shutting down")
    except Exception as e:
        error(f"Relay service failed: {e}")
        sys.exit(1)
