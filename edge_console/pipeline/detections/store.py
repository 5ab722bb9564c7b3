"""Bounded, most-recent-first log of detection events."""

from __future__ import annotations

from collections import deque
from typing import TYPE_CHECKING

from loguru import logger


if TYPE_CHECKING:
    from collections.abc import Iterator

    from edge_console.pipeline.types import DetectionEvent


EVENT_CAPACITY = 50
ALL_LABELS = "all"


def event_matches(
    event: DetectionEvent, label: str = ALL_LABELS, min_confidence_percent: float = 0
) -> bool:
    """Return True if the event passes the label and confidence filters.

    The two conditions are checked independently: one box may satisfy the label
    and another the confidence threshold.
    """
    threshold = min_confidence_percent / 100.0
    has_label = label == ALL_LABELS or any(
        box.label == label for box in event.detections
    )
    has_confidence = any(box.confidence >= threshold for box in event.detections)
    return has_label and has_confidence


class DetectionEventStore:
    """Keep the newest detection events, evicting the oldest past capacity."""

    def __init__(self, capacity: int = EVENT_CAPACITY) -> None:
        self.capacity = capacity
        self._events: deque[DetectionEvent] = deque(maxlen=capacity)

    def append(self, event: DetectionEvent) -> None:
        """Insert ``event`` at the front of the log."""
        if len(self._events) == self.capacity:
            logger.debug("Event store full; evicting {}", self._events[-1].id)
        self._events.appendleft(event)

    def events(self) -> list[DetectionEvent]:
        return list(self._events)

    def latest(self, count: int = 5) -> list[DetectionEvent]:
        return list(self._events)[:count]

    def filter(
        self, label: str = ALL_LABELS, min_confidence_percent: float = 0
    ) -> list[DetectionEvent]:
        """Return matching events, newest first, without touching the store."""
        return [
            event
            for event in self._events
            if event_matches(event, label, min_confidence_percent)
        ]

    def labels(self) -> list[str]:
        """Return the sorted set of labels seen in stored events."""
        return sorted({box.label for event in self._events for box in event.detections})

    def __len__(self) -> int:
        return len(self._events)

    def __iter__(self) -> Iterator[DetectionEvent]:
        return iter(list(self._events))
