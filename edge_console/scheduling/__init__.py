"""Timers, the streaming scheduler and the device pollers."""

from __future__ import annotations

from edge_console.scheduling.alarm import AlarmController
from edge_console.scheduling.pollers import AlarmPoller, HealthPoller
from edge_console.scheduling.scheduler import MODEL_NOT_LOADED, StreamingScheduler
from edge_console.scheduling.ticker import IntervalTicker, SingleFlight


__all__ = [
    "MODEL_NOT_LOADED",
    "AlarmController",
    "AlarmPoller",
    "HealthPoller",
    "IntervalTicker",
    "SingleFlight",
    "StreamingScheduler",
]
