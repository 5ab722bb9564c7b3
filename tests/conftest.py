"""Shared fixtures for edge console tests."""

from __future__ import annotations

import asyncio
import base64

import cv2
import numpy as np
import pytest

from edge_console.config import ConsoleConfig
from edge_console.pipeline.types import (
    AlarmStatus,
    BoundingBox,
    DetectionEvent,
    HealthStatus,
    InferenceMetadata,
    InferenceResponse,
    ModelHealth,
)
from edge_console.session import SessionContext


class FakeDeviceClient:
    """In-memory stand-in for EdgeDeviceClient.

    ``gate`` (an asyncio.Event) holds every ``infer`` call until it is set.
    Errors assigned to the ``*_error`` attributes are raised by the call.
    """

    def __init__(self) -> None:
        self.infer_calls: list = []
        self.alarm_actions: list = []
        self.gate: asyncio.Event | None = None
        self.response = InferenceResponse(detections=(), metadata=InferenceMetadata())
        self.health = HealthStatus(model=ModelHealth(loaded=True))
        self.alarm = AlarmStatus(active=False)
        self.infer_error: Exception | None = None
        self.health_error: Exception | None = None
        self.alarm_error: Exception | None = None

    async def infer(self, request):
        self.infer_calls.append(request)
        if self.gate is not None:
            await self.gate.wait()
        if self.infer_error is not None:
            raise self.infer_error
        return self.response

    async def get_health(self):
        if self.health_error is not None:
            raise self.health_error
        return self.health

    async def get_alarm(self):
        if self.alarm_error is not None:
            raise self.alarm_error
        return self.alarm

    async def control_alarm(self, action):
        self.alarm_actions.append(action)
        if self.alarm_error is not None:
            raise self.alarm_error
        self.alarm = AlarmStatus(active=action.action != "deactivate")
        return self.alarm


def png_base64(width: int = 200, height: int = 100) -> str:
    frame = np.full((height, width, 3), 40, dtype=np.uint8)
    ok, buffer = cv2.imencode(".png", frame)
    assert ok
    return base64.b64encode(buffer.tobytes()).decode("ascii")


def make_event(*boxes: tuple[str, float], inference_ms: float = 12.5) -> DetectionEvent:
    detections = tuple(
        BoundingBox(label, confidence, 0, 0, 10, 10) for label, confidence in boxes
    )
    response = InferenceResponse(
        detections=detections,
        metadata=InferenceMetadata(
            detection_count=len(detections), inference_ms=inference_ms
        ),
    )
    return DetectionEvent.from_response(response)


@pytest.fixture
def fake_client() -> FakeDeviceClient:
    return FakeDeviceClient()


@pytest.fixture
def make_session(fake_client):
    """Return a factory building a session around the fake client."""

    def _make(*, model_loaded: bool = True, **config_values) -> SessionContext:
        session = SessionContext(
            config=ConsoleConfig(**config_values), client=fake_client
        )
        if model_loaded:
            session.health = HealthStatus(model=ModelHealth(loaded=True))
        return session

    return _make


@pytest.fixture
def event_factory():
    return make_event


@pytest.fixture
def png_factory():
    return png_base64
