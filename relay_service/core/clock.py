"""Injectable time source.

Components that stamp rows (capture, poller) take a ``Clock`` so tests can
freeze time instead of reading the wall clock.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Return the current timezone-aware UTC time."""
    return datetime.now(UTC)
