"""Thread-safe snapshot of session state for the preview server."""

from __future__ import annotations

import dataclasses
import threading
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Any

from edge_console.events import (
    AlarmUpdated,
    DetectionRecorded,
    FrameRendered,
    HealthUpdated,
    StatsUpdated,
    StreamStateChanged,
)
from edge_console.pipeline.overlay import encode_jpeg
from edge_console.pipeline.types import SessionStats, StreamState


if TYPE_CHECKING:
    from collections import deque

    from edge_console.pipeline.types import AlarmStatus, DetectionEvent, HealthStatus
    from edge_console.session import SessionContext


def to_jsonable(value: Any) -> Any:
    """Convert dataclasses, enums and datetimes into JSON-friendly values."""
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {
            f.name: to_jsonable(getattr(value, f.name)) for f in dataclasses.fields(value)
        }
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, (list, tuple)):
        return [to_jsonable(item) for item in value]
    if isinstance(value, dict):
        return {key: to_jsonable(item) for key, item in value.items()}
    return value


class PreviewState:
    """Latest frame and telemetry copied out of the event loop.

    The preview server runs in its own thread and only ever reads this object;
    bus subscribers (on the event-loop thread) are the only writers.
    """

    def __init__(
        self,
        *,
        jpeg_quality: int = 70,
        stream_url: str | None = None,
        log_buffer: deque[str] | None = None,
    ) -> None:
        self.jpeg_quality = jpeg_quality
        self.stream_url = stream_url
        self.log_buffer = log_buffer
        self.lock = threading.Lock()
        self._jpeg: bytes | None = None
        self._frame_id = 0
        self._stats = SessionStats()
        self._events: list[DetectionEvent] = []
        self._health: HealthStatus | None = None
        self._alarm: AlarmStatus | None = None
        self._stream_state = StreamState.STOPPED
        self._fps = 0.0

    def attach(self, session: SessionContext) -> None:
        """Subscribe to the session bus."""
        bus = session.bus
        bus.subscribe(FrameRendered, self._on_frame)
        bus.subscribe(StatsUpdated, self._on_stats)
        bus.subscribe(DetectionRecorded, lambda _event: self._on_events(session))
        bus.subscribe(HealthUpdated, self._on_health)
        bus.subscribe(AlarmUpdated, self._on_alarm)
        bus.subscribe(StreamStateChanged, self._on_stream_state)

    def _on_frame(self, event: FrameRendered) -> None:
        jpeg = encode_jpeg(event.frame, self.jpeg_quality)
        if jpeg is None:
            return
        with self.lock:
            self._jpeg = jpeg
            self._frame_id += 1

    def _on_stats(self, event: StatsUpdated) -> None:
        with self.lock:
            self._stats = event.stats

    def _on_events(self, session: SessionContext) -> None:
        events = session.events.events()
        with self.lock:
            self._events = events

    def _on_health(self, event: HealthUpdated) -> None:
        # copy: the poller may degrade the held object in place later
        status = dataclasses.replace(event.status)
        with self.lock:
            self._health = status

    def _on_alarm(self, event: AlarmUpdated) -> None:
        with self.lock:
            self._alarm = event.status

    def _on_stream_state(self, event: StreamStateChanged) -> None:
        with self.lock:
            self._stream_state = event.state
            self._fps = event.fps

    def latest_jpeg(self) -> tuple[int, bytes | None]:
        with self.lock:
            return self._frame_id, self._jpeg

    def events(self) -> list[DetectionEvent]:
        with self.lock:
            return list(self._events)

    def recent_logs(self) -> list[str]:
        if self.log_buffer is None:
            return []
        return list(self.log_buffer)

    def summary(self) -> dict[str, Any]:
        """Return stats, stream, health and alarm as JSON-friendly data."""
        with self.lock:
            return {
                "stream": {"state": self._stream_state.value, "fps": self._fps},
                "stats": to_jsonable(self._stats),
                "health": to_jsonable(self._health),
                "alarm": to_jsonable(self._alarm),
                "events": len(self._events),
            }
