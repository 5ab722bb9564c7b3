"""Detection event storage and export."""

from __future__ import annotations

from edge_console.pipeline.detections.export import (
    CSV_HEADERS,
    event_row,
    export_csv,
    export_filename,
    to_csv,
    write_csv,
)
from edge_console.pipeline.detections.store import (
    ALL_LABELS,
    EVENT_CAPACITY,
    DetectionEventStore,
    event_matches,
)


__all__ = [
    "ALL_LABELS",
    "CSV_HEADERS",
    "EVENT_CAPACITY",
    "DetectionEventStore",
    "event_matches",
    "event_row",
    "export_csv",
    "export_filename",
    "to_csv",
    "write_csv",
]
