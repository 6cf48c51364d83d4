"""
Metric registry using prometheus_client.

Provides pre-defined metrics for interchain builds, handshakes, polls and
teardown. Exposes metrics in Prometheus text format.
"""

from __future__ import annotations

from prometheus_client import (
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

# Dedicated registry, free of the default Python process metrics.
REGISTRY = CollectorRegistry()

# -----------------------------------------------------------------------------
# Build
# -----------------------------------------------------------------------------

chains_started = Counter(
    "interchain_chains_started_total",
    "Chains that reached block production",
    registry=REGISTRY,
)

build_duration = Histogram(
    "interchain_build_seconds",
    "Duration of Build, successful or not",
    buckets=(1.0, 5.0, 15.0, 30.0, 60.0, 120.0, 300.0, 600.0),
    registry=REGISTRY,
)

builds_failed = Counter(
    "interchain_builds_failed_total",
    "Builds that raised",
    registry=REGISTRY,
)

# -----------------------------------------------------------------------------
# Handshake
# -----------------------------------------------------------------------------

handshake_steps = Counter(
    "interchain_handshake_steps_total",
    "Handshake steps by outcome (created, adopted, recorded, rejected, timeout)",
    labelnames=("step", "outcome"),
    registry=REGISTRY,
)

# -----------------------------------------------------------------------------
# Polling
# -----------------------------------------------------------------------------

poll_blocks = Histogram(
    "interchain_poll_blocks",
    "Blocks consumed by a poll before it returned",
    buckets=(0, 1, 2, 5, 10, 20, 50, 100),
    registry=REGISTRY,
)

# -----------------------------------------------------------------------------
# Teardown
# -----------------------------------------------------------------------------

teardown_errors = Counter(
    "interchain_teardown_errors_total",
    "Errors collected during teardown",
    registry=REGISTRY,
)


def generate_metrics() -> bytes:
    """
    Generate Prometheus metrics output.

    Returns:
        Prometheus text format output as bytes.
    """
    return generate_latest(REGISTRY)
