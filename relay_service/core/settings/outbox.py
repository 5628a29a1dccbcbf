"""Outbox relay settings.

Environment variables use OUTBOX_ prefix.
Example: OUTBOX_BATCH_SIZE=50, OUTBOX_POLL_INTERVAL_SECONDS=5
"""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class OutboxSettings(BaseSettings):
    """Poller and retry policy for the transactional outbox."""

    # ──────────────────────────────────────────────────────────────
    # Polling
    # ──────────────────────────────────────────────────────────────

    batch_size: int = Field(
        default=20,
        ge=1,
        le=1000,
        description="Maximum rows claimed per poll cycle",
    )

    poll_interval_seconds: float = Field(
        default=15.0,
        gt=0,
        le=3600,
        description="Interval between scheduled poll cycles (seconds)",
    )

    # ──────────────────────────────────────────────────────────────
    # Enqueue retry policy
    # ──────────────────────────────────────────────────────────────

    max_enqueue_attempts: int = Field(
        default=10,
        ge=0,
        le=1000,
        description=(
            "Failed enqueue attempts after which a row is dead-lettered and no "
            "longer claimed. 0 disables the ceiling."
        ),
    )

    retry_delay_seconds: float = Field(
        default=0.0,
        ge=0,
        le=86400,
        description=(
            "Base backoff applied to next_attempt_at after a failed enqueue, "
            "doubled per attempt. 0 retries on the next poll."
        ),
    )

    max_retry_delay_seconds: float = Field(
        default=3600.0,
        ge=0,
        le=604800,
        description="Upper bound for the computed enqueue backoff (seconds)",
    )

    # ──────────────────────────────────────────────────────────────
    # Housekeeping
    # ──────────────────────────────────────────────────────────────

    cleanup_older_than_days: int = Field(
        default=7,
        ge=1,
        le=3650,
        description="Processed rows older than this are removed by the cleanup command",
    )

    model_config = SettingsConfigDict(
        env_prefix="OUTBOX_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        frozen=True,
        extra="ignore",
        env_ignore_empty=True,
    )

    @property
    def has_retry_ceiling(self) -> bool:
        """Whether dead-lettering is enabled."""
        return self.max_enqueue_attempts > 0
