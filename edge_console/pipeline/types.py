"""Shared data structures for the edge console pipeline."""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Union

from edge_console.errors import ValidationError


class DeviceState(str, Enum):
    """Overall device status as reported by ``GET /health``."""

    OK = "ok"
    DEGRADED = "degraded"


class StreamState(Enum):
    """Streaming scheduler states."""

    STOPPED = "stopped"
    RUNNING = "running"


@dataclass(frozen=True)
class BoundingBox:
    """Detected object in source-image pixel coordinates."""

    label: str
    confidence: float
    x_min: float
    y_min: float
    x_max: float
    y_max: float

    @property
    def width(self) -> float:
        return self.x_max - self.x_min

    @property
    def height(self) -> float:
        return self.y_max - self.y_min


@dataclass(frozen=True)
class CaptureRequest:
    """Ask the device to grab a frame from its own camera."""

    return_image: bool = True


@dataclass(frozen=True)
class SuppliedImageRequest:
    """Run inference on a caller-supplied base64 image."""

    image_base64: str
    return_image: bool = True

    def __post_init__(self) -> None:
        if not self.image_base64:
            message = "A supplied-image request needs a non-empty base64 payload"
            raise ValidationError(message)


InferenceRequest = Union[CaptureRequest, SuppliedImageRequest]


def build_inference_request(
    *,
    capture_from_camera: bool,
    image_base64: str | None = None,
    return_image: bool = True,
) -> InferenceRequest:
    """Resolve the flag-style request shape into a tagged request.

    Raises:
        ValidationError: if neither the camera nor a supplied image is usable.
    """
    if capture_from_camera:
        return CaptureRequest(return_image=return_image)
    if not image_base64:
        message = "Either capture_from_camera or image_base64 must be provided"
        raise ValidationError(message)
    return SuppliedImageRequest(image_base64=image_base64, return_image=return_image)


@dataclass(frozen=True)
class InferenceMetadata:
    """Metadata attached to an inference response."""

    detection_count: int = 0
    inference_ms: float = 0.0
    model_path: str | None = None
    note: str | None = None


@dataclass(frozen=True)
class InferenceResponse:
    """Decoded ``POST /infer`` response."""

    detections: tuple[BoundingBox, ...]
    metadata: InferenceMetadata
    encoded_image: str | None = None


def _new_event_id() -> str:
    return f"{int(time.time() * 1000)}-{uuid.uuid4().hex[:9]}"


@dataclass(frozen=True)
class DetectionEvent:
    """A recorded inference result that contained at least one detection."""

    id: str
    timestamp: datetime
    detections: tuple[BoundingBox, ...]
    metadata: InferenceMetadata
    thumbnail: str | None = None

    @classmethod
    def from_response(
        cls, response: InferenceResponse, *, timestamp: datetime | None = None
    ) -> DetectionEvent:
        """Create an event from a response that has detections."""
        if not response.detections:
            message = "Detection events require at least one detection"
            raise ValidationError(message)
        return cls(
            id=_new_event_id(),
            timestamp=timestamp or datetime.now(timezone.utc),
            detections=tuple(response.detections),
            metadata=response.metadata,
            thumbnail=response.encoded_image,
        )

    @property
    def labels(self) -> list[str]:
        return [box.label for box in self.detections]


@dataclass(frozen=True)
class SessionStats:
    """Rolling statistics for the current streaming session."""

    avg_latency_ms: float = 0.0
    p95_latency_ms: float = 0.0
    detections_per_minute: float = 0.0
    total_frames: int = 0
    latency_history: tuple[float, ...] = ()


@dataclass
class CameraHealth:
    """Camera section of the health report."""

    available: bool = False
    using_mock: bool = False
    width: int = 0
    height: int = 0
    fps: float = 0.0


@dataclass
class ModelHealth:
    """Model section of the health report."""

    loaded: bool = False
    path: str | None = None
    autoload: bool | None = None


@dataclass
class HealthStatus:
    """Device health; kept mutable so a failed poll can degrade it in place."""

    status: DeviceState = DeviceState.OK
    camera: CameraHealth = field(default_factory=CameraHealth)
    model: ModelHealth = field(default_factory=ModelHealth)


@dataclass(frozen=True)
class AlarmStatus:
    """Alarm actuator state."""

    enabled: bool = True
    active: bool = False
    triggered_at: datetime | None = None
    pulse_duration: float = 0.0
    voice_warning: str | None = None


@dataclass(frozen=True)
class Activate:
    """Switch the alarm on until deactivated."""

    action: str = field(default="activate", init=False)


@dataclass(frozen=True)
class Deactivate:
    """Switch the alarm off."""

    action: str = field(default="deactivate", init=False)


@dataclass(frozen=True)
class Trigger:
    """Pulse the alarm, optionally for a fixed number of seconds."""

    duration_seconds: float | None = None
    action: str = field(default="trigger", init=False)

    def __post_init__(self) -> None:
        if self.duration_seconds is not None and self.duration_seconds <= 0:
            message = f"Trigger duration must be positive, got {self.duration_seconds}"
            raise ValidationError(message)


AlarmAction = Union[Activate, Deactivate, Trigger]


@dataclass(frozen=True)
class ModelLoadResult:
    """Result of ``POST /model/load``."""

    success: bool
    message: str = ""


@dataclass(frozen=True)
class DeviceLocation:
    """Manually configured device coordinates."""

    lat: float
    lng: float

    def __post_init__(self) -> None:
        if not -90.0 <= self.lat <= 90.0:
            message = f"Latitude out of range: {self.lat}"
            raise ValidationError(message)
        if not -180.0 <= self.lng <= 180.0:
            message = f"Longitude out of range: {self.lng}"
            raise ValidationError(message)

    def __str__(self) -> str:
        return f"{self.lat:.6f}, {self.lng:.6f}"
