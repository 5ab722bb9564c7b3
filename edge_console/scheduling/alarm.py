"""Synchronous alarm control actions."""

from __future__ import annotations

from typing import TYPE_CHECKING

from loguru import logger

from edge_console.errors import EdgeConsoleError
from edge_console.events import AlarmUpdated
from edge_console.pipeline.types import Activate, Deactivate, Trigger


if TYPE_CHECKING:
    from edge_console.pipeline.types import AlarmAction, AlarmStatus
    from edge_console.session import SessionContext


class AlarmController:
    """Send alarm actions and keep the session's alarm status current.

    Failures are logged and re-raised to the caller; nothing is retried.
    """

    def __init__(self, session: SessionContext) -> None:
        self.session = session

    async def activate(self) -> AlarmStatus:
        return await self.send(Activate())

    async def deactivate(self) -> AlarmStatus:
        return await self.send(Deactivate())

    async def trigger(self, duration_seconds: float | None = None) -> AlarmStatus:
        return await self.send(Trigger(duration_seconds=duration_seconds))

    async def toggle(self) -> AlarmStatus:
        """Deactivate an active alarm, otherwise activate it."""
        held = self.session.alarm
        if held is not None and held.active:
            return await self.deactivate()
        return await self.activate()

    async def send(self, action: AlarmAction) -> AlarmStatus:
        """Send ``action`` and store the returned status."""
        try:
            status = await self.session.client.control_alarm(action)
        except EdgeConsoleError as exc:
            logger.error("Alarm {} failed: {}", action.action, exc)
            raise
        self.session.alarm = status
        logger.info("Alarm {} -> active={}", action.action, status.active)
        self.session.bus.publish(AlarmUpdated(status))
        return status
