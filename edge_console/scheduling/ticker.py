"""Interval timers and single-flight task guards on the asyncio loop."""

from __future__ import annotations

import asyncio
import math
from typing import TYPE_CHECKING, Any, Callable

from loguru import logger


if TYPE_CHECKING:
    from collections.abc import Coroutine


class IntervalTicker:
    """Call ``callback`` every ``interval_s`` seconds on the running loop.

    Deadlines are fixed-rate; if the loop falls behind, missed ticks are skipped
    rather than fired in a burst. ``start`` always cancels the previous timer
    task first, so a ticker never has two live timers.
    """

    def __init__(
        self,
        interval_s: float,
        callback: Callable[[], None],
        *,
        name: str = "ticker",
        fire_immediately: bool = False,
    ) -> None:
        """Create a stopped ticker."""
        if interval_s <= 0:
            message = f"Ticker interval must be positive, got {interval_s}"
            raise ValueError(message)
        self.interval_s = interval_s
        self.name = name
        self.fire_immediately = fire_immediately
        self.ticks = 0
        self._callback = callback
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self, interval_s: float | None = None) -> None:
        """Start (or restart) the timer, optionally with a new interval."""
        if interval_s is not None:
            if interval_s <= 0:
                message = f"Ticker interval must be positive, got {interval_s}"
                raise ValueError(message)
            self.interval_s = interval_s
        self.stop()
        loop = asyncio.get_running_loop()
        self._task = loop.create_task(self._run(self.interval_s), name=self.name)
        logger.debug("{} ticker started ({:.3f}s)", self.name, self.interval_s)

    def stop(self) -> None:
        """Cancel the pending timer; a callback already running is unaffected."""
        if self._task is None:
            return
        self._task.cancel()
        self._task = None
        logger.debug("{} ticker stopped", self.name)

    def restart(self, interval_s: float) -> None:
        self.start(interval_s)

    async def _run(self, interval_s: float) -> None:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + (0.0 if self.fire_immediately else interval_s)
        while True:
            delay = deadline - loop.time()
            if delay > 0:
                await asyncio.sleep(delay)
            self._fire()
            deadline += interval_s
            now = loop.time()
            if deadline <= now:
                deadline += interval_s * (math.floor((now - deadline) / interval_s) + 1)

    def _fire(self) -> None:
        self.ticks += 1
        try:
            self._callback()
        except Exception:
            logger.exception("{} ticker callback failed", self.name)


class SingleFlight:
    """Allow at most one task of a kind to be in flight; extra launches are dropped."""

    def __init__(self, name: str = "task") -> None:
        self.name = name
        self.dropped = 0
        self._task: asyncio.Task[Any] | None = None

    @property
    def busy(self) -> bool:
        return self._task is not None and not self._task.done()

    def launch(
        self, factory: Callable[[], Coroutine[Any, Any, Any]]
    ) -> asyncio.Task[Any] | None:
        """Start ``factory()`` as a task unless one is already running."""
        if self.busy:
            self.dropped += 1
            logger.trace("{} busy; dropped launch #{}", self.name, self.dropped)
            return None
        self._task = asyncio.get_running_loop().create_task(factory())
        return self._task

    async def wait(self) -> None:
        """Wait for the in-flight task (if any) without raising its error."""
        task = self._task
        if task is not None and not task.done():
            await asyncio.wait({task})
