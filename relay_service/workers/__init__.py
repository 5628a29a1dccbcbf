"""Background worker task definitions.

This package contains the actual task implementations (the work being done):
- outbox/: replay of captured notifications through the mediator

For task infrastructure (broker, scheduler), see `infra/tasks/`.

Task definitions are registered with the broker on import.
"""

from __future__ import annotations

__all__: list[str] = []
