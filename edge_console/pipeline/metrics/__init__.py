"""Session telemetry helpers."""

from __future__ import annotations

from edge_console.pipeline.metrics.telemetry import (
    LATENCY_CAPACITY,
    RATE_WINDOW_MS,
    TelemetryAggregator,
    nearest_rank,
)


__all__ = ["LATENCY_CAPACITY", "RATE_WINDOW_MS", "TelemetryAggregator", "nearest_rank"]
