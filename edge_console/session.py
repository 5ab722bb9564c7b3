"""Explicitly owned state shared by the scheduler, pollers and presenters."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from edge_console.bus import EventBus
from edge_console.pipeline.detections import DetectionEventStore
from edge_console.pipeline.metrics import TelemetryAggregator
from edge_console.pipeline.overlay import OverlayRenderer


if TYPE_CHECKING:
    from datetime import datetime

    import numpy as np

    from edge_console.client import EdgeDeviceClient
    from edge_console.config import ConsoleConfig
    from edge_console.pipeline.types import AlarmStatus, HealthStatus


@dataclass
class SessionContext:
    """Everything one console session owns.

    Components receive the session by reference; nothing in the package keeps
    module-level state.
    """

    config: ConsoleConfig
    client: EdgeDeviceClient
    bus: EventBus = field(default_factory=EventBus)
    telemetry: TelemetryAggregator | None = None
    events: DetectionEventStore | None = None
    renderer: OverlayRenderer | None = None
    health: HealthStatus | None = None
    alarm: AlarmStatus | None = None
    last_health_update: datetime | None = None
    last_frame_time: datetime | None = None
    latest_frame: np.ndarray | None = None

    def __post_init__(self) -> None:
        if self.telemetry is None:
            self.telemetry = TelemetryAggregator(
                capacity=self.config.latency_capacity,
                window_ms=self.config.rate_window_ms,
            )
        if self.events is None:
            self.events = DetectionEventStore(capacity=self.config.event_capacity)
        if self.renderer is None:
            self.renderer = OverlayRenderer(enabled=self.config.show_overlay)

    @property
    def model_loaded(self) -> bool:
        return self.health is not None and self.health.model.loaded
