"""Events published on the session bus."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING


if TYPE_CHECKING:
    import numpy as np

    from edge_console.errors import EdgeConsoleError
    from edge_console.pipeline.overlay import OverlayBox
    from edge_console.pipeline.types import (
        AlarmStatus,
        DetectionEvent,
        HealthStatus,
        InferenceResponse,
        SessionStats,
        StreamState,
    )


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class StreamStateChanged:
    state: StreamState
    fps: float


@dataclass(frozen=True)
class PreconditionReported:
    """An operation was refused because the device is not ready."""

    message: str


@dataclass(frozen=True)
class FrameProcessed:
    """One inference cycle finished successfully."""

    response: InferenceResponse
    latency_ms: float
    timestamp: datetime = field(default_factory=_utcnow)


@dataclass(frozen=True)
class StatsUpdated:
    stats: SessionStats


@dataclass(frozen=True)
class FrameRendered:
    """The annotated display frame for the latest cycle."""

    frame: np.ndarray
    boxes: tuple[OverlayBox, ...]
    timestamp: datetime = field(default_factory=_utcnow)


@dataclass(frozen=True)
class DetectionRecorded:
    event: DetectionEvent


@dataclass(frozen=True)
class CycleFailed:
    error: EdgeConsoleError


@dataclass(frozen=True)
class HealthUpdated:
    status: HealthStatus
    degraded: bool = False


@dataclass(frozen=True)
class AlarmUpdated:
    status: AlarmStatus
