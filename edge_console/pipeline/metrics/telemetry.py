"""Rolling latency and detection-rate statistics for a streaming session."""

from __future__ import annotations

import math
import time
from collections import deque

from edge_console.pipeline.types import SessionStats


LATENCY_CAPACITY = 60
RATE_WINDOW_MS = 60_000.0
P95 = 0.95


def _now_ms() -> float:
    return time.monotonic() * 1000.0


def nearest_rank(samples: list[float], quantile: float) -> float:
    """Return ``sorted(samples)[floor(quantile * n)]``, or 0 for no samples."""
    if not samples:
        return 0.0
    ordered = sorted(samples)
    index = min(len(ordered) - 1, math.floor(quantile * len(ordered)))
    return ordered[index]


class TelemetryAggregator:
    """Track inference latency and detection counts over rolling windows.

    Latencies live in a fixed-capacity ring buffer. Detection counts live in a
    time window keyed by the caller's clock, so ``detections_per_minute`` is the
    plain sum of counts seen in the last ``window_ms``.
    """

    def __init__(
        self,
        capacity: int = LATENCY_CAPACITY,
        window_ms: float = RATE_WINDOW_MS,
    ) -> None:
        """Initialize empty buffers."""
        self.capacity = capacity
        self.window_ms = window_ms
        self.latencies: deque[float] = deque(maxlen=capacity)
        self.detection_window: deque[tuple[float, int]] = deque()
        self.total_frames = 0

    def record_latency(self, elapsed_ms: float) -> None:
        """Record one successful inference round trip in milliseconds."""
        self.latencies.append(float(elapsed_ms))
        self.total_frames += 1

    def record_detections(self, count: int, now_ms: float | None = None) -> None:
        """Record the detection count of one frame at ``now_ms``."""
        now = _now_ms() if now_ms is None else now_ms
        self.detection_window.append((now, int(count)))
        self._prune(now)

    def _prune(self, now_ms: float) -> None:
        while self.detection_window and (
            now_ms - self.detection_window[0][0] >= self.window_ms
        ):
            self.detection_window.popleft()

    def snapshot(self, now_ms: float | None = None) -> SessionStats:
        """Compute the current session statistics."""
        self._prune(_now_ms() if now_ms is None else now_ms)

        history = list(self.latencies)
        avg = sum(history) / len(history) if history else 0.0
        return SessionStats(
            avg_latency_ms=avg,
            p95_latency_ms=nearest_rank(history, P95),
            detections_per_minute=float(
                sum(count for _, count in self.detection_window)
            ),
            total_frames=self.total_frames,
            latency_history=tuple(history),
        )
