"""Typed publish/subscribe channel between the pipeline and its presenters."""

from __future__ import annotations

from collections import defaultdict
from typing import Any, Callable, TypeVar

from loguru import logger


EventT = TypeVar("EventT")
Subscriber = Callable[[Any], None]


class EventBus:
    """Dispatch events to subscribers registered for the event's type.

    Subscribers run synchronously in publish order. A failing subscriber is
    logged and skipped so that presentation code cannot break the pipeline.
    """

    def __init__(self) -> None:
        self._subscribers: defaultdict[type, list[Subscriber]] = defaultdict(list)

    def subscribe(self, event_type: type[EventT], callback: Callable[[EventT], None]) -> None:
        self._subscribers[event_type].append(callback)

    def unsubscribe(self, event_type: type[EventT], callback: Callable[[EventT], None]) -> None:
        listeners = self._subscribers.get(event_type)
        if not listeners:
            return
        try:
            listeners.remove(callback)
        except ValueError:
            return
        if not listeners:
            self._subscribers.pop(event_type, None)

    def publish(self, event: object) -> None:
        for listener in tuple(self._subscribers.get(type(event), ())):
            try:
                listener(event)
            except Exception:
                logger.exception(
                    "Subscriber {} failed on {}", listener, type(event).__name__
                )
