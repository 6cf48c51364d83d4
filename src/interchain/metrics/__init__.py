"""
Metrics module for observability.

Counters and histograms tracking builds, handshakes, polls and teardown.
Exposes metrics in Prometheus text format.
"""

from .registry import (
    REGISTRY,
    build_duration,
    builds_failed,
    chains_started,
    generate_metrics,
    handshake_steps,
    poll_blocks,
    teardown_errors,
)

__all__ = [
    "REGISTRY",
    "build_duration",
    "builds_failed",
    "chains_started",
    "generate_metrics",
    "handshake_steps",
    "poll_blocks",
    "teardown_errors",
]
