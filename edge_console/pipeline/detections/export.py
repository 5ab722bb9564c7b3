"""CSV projection of detection events."""

from __future__ import annotations

import csv
import io
from datetime import date, datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, TextIO

from loguru import logger


if TYPE_CHECKING:
    from collections.abc import Iterable

    from edge_console.pipeline.types import DetectionEvent


CSV_HEADERS = ("timestamp", "labels", "confidences", "count", "latency")


def event_row(event: DetectionEvent) -> dict[str, str | int | float]:
    """Project one event onto a CSV row."""
    return {
        "timestamp": event.timestamp.isoformat(),
        "labels": ";".join(box.label for box in event.detections),
        "confidences": ";".join(f"{box.confidence:.3f}" for box in event.detections),
        "count": len(event.detections),
        "latency": event.metadata.inference_ms,
    }


def write_csv(events: Iterable[DetectionEvent], stream: TextIO) -> int:
    """Write events to ``stream`` and return the number of rows written."""
    writer = csv.DictWriter(stream, fieldnames=CSV_HEADERS, lineterminator="\n")
    writer.writeheader()
    rows = 0
    for event in events:
        writer.writerow(event_row(event))
        rows += 1
    return rows


def to_csv(events: Iterable[DetectionEvent]) -> str:
    """Render events as CSV text."""
    buffer = io.StringIO()
    write_csv(events, buffer)
    return buffer.getvalue()


def export_filename(day: date | None = None) -> str:
    """Return the default export file name, e.g. ``detections-2026-10-19.csv``."""
    day = day or datetime.now(timezone.utc).date()
    return f"detections-{day.isoformat()}.csv"


def export_csv(events: Iterable[DetectionEvent], path: str | Path) -> Path:
    """Write events to ``path`` (a directory gets the default file name)."""
    target = Path(path)
    if target.is_dir():
        target = target / export_filename()
    target.parent.mkdir(parents=True, exist_ok=True)
    with target.open("w", newline="", encoding="utf-8") as handle:
        rows = write_csv(events, handle)
    logger.info("Exported {} detection events to {}", rows, target)
    return target
