"""Streaming/telemetry pipeline building blocks."""

from __future__ import annotations

from edge_console.pipeline.detections import DetectionEventStore, export_csv, to_csv
from edge_console.pipeline.metrics import TelemetryAggregator
from edge_console.pipeline.overlay import OverlayBox, OverlayRenderer, OverlaySurface
from edge_console.pipeline.types import (
    Activate,
    AlarmAction,
    AlarmStatus,
    BoundingBox,
    CameraHealth,
    CaptureRequest,
    Deactivate,
    DetectionEvent,
    DeviceLocation,
    DeviceState,
    HealthStatus,
    InferenceMetadata,
    InferenceRequest,
    InferenceResponse,
    ModelHealth,
    ModelLoadResult,
    SessionStats,
    StreamState,
    SuppliedImageRequest,
    Trigger,
    build_inference_request,
)


__all__ = [
    "Activate",
    "AlarmAction",
    "AlarmStatus",
    "BoundingBox",
    "CameraHealth",
    "CaptureRequest",
    "Deactivate",
    "DetectionEvent",
    "DetectionEventStore",
    "DeviceLocation",
    "DeviceState",
    "HealthStatus",
    "InferenceMetadata",
    "InferenceRequest",
    "InferenceResponse",
    "ModelHealth",
    "ModelLoadResult",
    "OverlayBox",
    "OverlayRenderer",
    "OverlaySurface",
    "SessionStats",
    "StreamState",
    "SuppliedImageRequest",
    "TelemetryAggregator",
    "Trigger",
    "build_inference_request",
    "export_csv",
    "to_csv",
]
