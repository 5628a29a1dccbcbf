"""Prometheus metrics for the outbox relay."""

from __future__ import annotations

from prometheus_client import CollectorRegistry, Counter, Histogram

# Create custom registry for better control
REGISTRY = CollectorRegistry()

# Covers handler and enqueue latencies from 1ms to 10s
DEFAULT_LATENCY_BUCKETS = (
    0.001,
    0.005,
    0.01,
    0.025,
    0.05,
    0.1,
    0.25,
    0.5,
    1.0,
    2.5,
    5.0,
    10.0,
)

# Claimed rows per poll cycle
BATCH_SIZE_BUCKETS = (0, 1, 2, 5, 10, 20, 50, 100, 200, 500)

# Outbox capture and relay metrics
outbox_messages_captured_total = Counter(
    "relay_outbox_messages_captured_total",
    "Notifications written to the outbox",
    ["event_type"],
    registry=REGISTRY,
)

outbox_messages_enqueued_total = Counter(
    "relay_outbox_messages_enqueued_total",
    "Outbox rows handed off to the job queue",
    ["event_type"],
    registry=REGISTRY,
)

outbox_enqueue_failures_total = Counter(
    "relay_outbox_enqueue_failures_total",
    "Outbox rows whose enqueue call raised",
    ["event_type"],
    registry=REGISTRY,
)

outbox_claim_failures_total = Counter(
    "relay_outbox_claim_failures_total",
    "Poll cycles aborted because the claim query failed",
    registry=REGISTRY,
)

outbox_batch_size = Histogram(
    "relay_outbox_batch_size",
    "Rows claimed per poll cycle",
    buckets=BATCH_SIZE_BUCKETS,
    registry=REGISTRY,
)

# Job executor metrics
outbox_events_processed_total = Counter(
    "relay_outbox_events_processed_total",
    "Outbox jobs executed by workers",
    ["event_type", "status"],
    registry=REGISTRY,
)

outbox_event_processing_seconds = Histogram(
    "relay_outbox_event_processing_seconds",
    "Time spent deserializing and publishing one outbox job",
    ["event_type"],
    buckets=DEFAULT_LATENCY_BUCKETS,
    registry=REGISTRY,
)

# Mediator metrics
mediator_handler_failures_total = Counter(
    "relay_mediator_handler_failures_total",
    "Handler invocations that returned a failed result",
    ["request_type"],
    registry=REGISTRY,
)
