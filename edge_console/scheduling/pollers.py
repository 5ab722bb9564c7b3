"""Fixed-interval health and alarm pollers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from loguru import logger

from edge_console.errors import EdgeConsoleError
from edge_console.events import AlarmUpdated, HealthUpdated
from edge_console.pipeline.types import DeviceState
from edge_console.scheduling.ticker import IntervalTicker, SingleFlight


if TYPE_CHECKING:
    from edge_console.pipeline.types import AlarmStatus, HealthStatus
    from edge_console.session import SessionContext


class _Poller(ABC):
    """Fixed-interval, single-flight poll loop; subclasses implement ``poll_once``."""

    interval_attr = ""
    name = "poller"

    def __init__(self, session: SessionContext, interval_s: float | None = None) -> None:
        self.session = session
        interval = interval_s or getattr(session.config, self.interval_attr)
        self._ticker = IntervalTicker(
            interval, self._on_tick, name=self.name, fire_immediately=True
        )
        self._flight = SingleFlight(self.name)

    @property
    def running(self) -> bool:
        return self._ticker.running

    @property
    def interval_s(self) -> float:
        return self._ticker.interval_s

    def start(self) -> None:
        self._ticker.start()

    def stop(self) -> None:
        self._ticker.stop()

    async def wait_idle(self) -> None:
        await self._flight.wait()

    def _on_tick(self) -> None:
        self._flight.launch(self.poll_once)

    @abstractmethod
    async def poll_once(self) -> object:
        """Fetch once and update the session."""


class HealthPoller(_Poller):
    """Poll ``GET /health``; on failure degrade the held status in place."""

    interval_attr = "health_interval_s"
    name = "health"

    async def poll_once(self) -> HealthStatus | None:
        """Fetch health once and update the session."""
        session = self.session
        try:
            status = await session.client.get_health()
        except EdgeConsoleError as exc:
            logger.warning("Health check failed: {}", exc)
            held = session.health
            if held is not None:
                held.status = DeviceState.DEGRADED
                session.bus.publish(HealthUpdated(held, degraded=True))
            return None

        if session.health is None or session.health.model.loaded != status.model.loaded:
            logger.info(
                "Device health: {} (camera={}, model loaded={})",
                status.status.value,
                status.camera.available,
                status.model.loaded,
            )
        session.health = status
        session.last_health_update = datetime.now(timezone.utc)
        session.bus.publish(HealthUpdated(status))
        return status

    async def refresh(self) -> HealthStatus | None:
        """One-shot refresh, e.g. right after a model load."""
        return await self.poll_once()


class AlarmPoller(_Poller):
    """Poll ``GET /alarm``; a failed poll leaves the held status untouched."""

    interval_attr = "alarm_interval_s"
    name = "alarm"

    async def poll_once(self) -> AlarmStatus | None:
        session = self.session
        try:
            status = await session.client.get_alarm()
        except EdgeConsoleError as exc:
            logger.warning("Alarm status check failed: {}", exc)
            return None
        session.alarm = status
        session.bus.publish(AlarmUpdated(status))
        return status
