"""JSON payload encoding and decoding for the edge device API."""

from __future__ import annotations

import math
from datetime import datetime, timezone
from typing import Any

from edge_console.errors import DecodeError
from edge_console.pipeline.types import (
    AlarmAction,
    AlarmStatus,
    BoundingBox,
    CameraHealth,
    CaptureRequest,
    DeviceState,
    HealthStatus,
    InferenceMetadata,
    InferenceRequest,
    InferenceResponse,
    ModelHealth,
    ModelLoadResult,
    Trigger,
)


def encode_inference_request(request: InferenceRequest) -> dict[str, Any]:
    """Encode a tagged inference request into the ``POST /infer`` body."""
    if isinstance(request, CaptureRequest):
        return {"capture_from_camera": True, "return_image": request.return_image}
    return {
        "capture_from_camera": False,
        "image_base64": request.image_base64,
        "return_image": request.return_image,
    }


def encode_alarm_action(action: AlarmAction) -> dict[str, Any]:
    """Encode an alarm action into the ``POST /alarm`` body."""
    body: dict[str, Any] = {"action": action.action}
    if isinstance(action, Trigger) and action.duration_seconds is not None:
        body["duration_seconds"] = action.duration_seconds
    return body


def _require_mapping(payload: object, what: str) -> dict[str, Any]:
    if not isinstance(payload, dict):
        message = f"Expected a JSON object for {what}, got {type(payload).__name__}"
        raise DecodeError(message)
    return payload


def _number(payload: dict[str, Any], key: str, what: str, default: float | None = None) -> float:
    value = payload.get(key, default)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        message = f"{what}.{key} must be a number, got {value!r}"
        raise DecodeError(message)
    if not math.isfinite(value):
        message = f"{what}.{key} must be finite, got {value!r}"
        raise DecodeError(message)
    return float(value)


def _optional_str(payload: dict[str, Any], key: str) -> str | None:
    value = payload.get(key)
    return None if value is None else str(value)


def decode_bounding_box(payload: object) -> BoundingBox:
    """Decode and validate one detection box."""
    data = _require_mapping(payload, "detection")
    label = data.get("label")
    if not isinstance(label, str):
        message = f"detection.label must be a string, got {label!r}"
        raise DecodeError(message)

    box = BoundingBox(
        label=label,
        confidence=_number(data, "confidence", "detection"),
        x_min=_number(data, "x_min", "detection"),
        y_min=_number(data, "y_min", "detection"),
        x_max=_number(data, "x_max", "detection"),
        y_max=_number(data, "y_max", "detection"),
    )
    if not 0.0 <= box.confidence <= 1.0:
        message = f"confidence out of range for {label!r}: {box.confidence}"
        raise DecodeError(message)
    if box.x_min > box.x_max or box.y_min > box.y_max:
        message = f"inverted bounding box for {label!r}: {box}"
        raise DecodeError(message)
    return box


def decode_inference_response(payload: object) -> InferenceResponse:
    """Decode a ``POST /infer`` response body."""
    data = _require_mapping(payload, "inference response")
    raw_detections = data.get("detections", [])
    if not isinstance(raw_detections, list):
        message = "inference response detections must be a list"
        raise DecodeError(message)
    detections = tuple(decode_bounding_box(item) for item in raw_detections)

    meta = _require_mapping(data.get("metadata", {}), "metadata")
    inference_ms = _number(meta, "inference_ms", "metadata", default=0.0)
    if inference_ms < 0:
        message = f"metadata.inference_ms must be non-negative, got {inference_ms}"
        raise DecodeError(message)
    metadata = InferenceMetadata(
        detection_count=int(
            _number(meta, "detection_count", "metadata", default=len(detections))
        ),
        inference_ms=inference_ms,
        model_path=_optional_str(meta, "model_path"),
        note=_optional_str(meta, "note"),
    )

    encoded_image = data.get("encoded_image")
    if encoded_image is not None and not isinstance(encoded_image, str):
        message = "encoded_image must be a base64 string"
        raise DecodeError(message)

    return InferenceResponse(
        detections=detections,
        metadata=metadata,
        encoded_image=encoded_image or None,
    )


def decode_health(payload: object) -> HealthStatus:
    """Decode a ``GET /health`` response body."""
    data = _require_mapping(payload, "health")
    try:
        status = DeviceState(data.get("status", DeviceState.OK.value))
    except ValueError as exc:
        message = f"unknown health status {data.get('status')!r}"
        raise DecodeError(message) from exc

    camera = _require_mapping(data.get("camera", {}), "health.camera")
    model = _require_mapping(data.get("model", {}), "health.model")
    autoload = model.get("autoload")
    return HealthStatus(
        status=status,
        camera=CameraHealth(
            available=bool(camera.get("available", False)),
            using_mock=bool(camera.get("using_mock", False)),
            width=int(_number(camera, "width", "health.camera", default=0)),
            height=int(_number(camera, "height", "health.camera", default=0)),
            fps=_number(camera, "fps", "health.camera", default=0.0),
        ),
        model=ModelHealth(
            loaded=bool(model.get("loaded", False)),
            path=_optional_str(model, "path"),
            autoload=None if autoload is None else bool(autoload),
        ),
    )


def _decode_timestamp(value: object) -> datetime | None:
    if value is None:
        return None
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return datetime.fromtimestamp(value / 1000.0, tz=timezone.utc)
    if isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError as exc:
            message = f"triggered_at is not ISO-8601: {value!r}"
            raise DecodeError(message) from exc
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed
    message = f"triggered_at has unsupported type {type(value).__name__}"
    raise DecodeError(message)


def decode_alarm_status(payload: object) -> AlarmStatus:
    """Decode a ``GET /alarm`` or ``POST /alarm`` response body."""
    data = _require_mapping(payload, "alarm")
    if "active" not in data:
        message = "alarm status is missing 'active'"
        raise DecodeError(message)
    return AlarmStatus(
        enabled=bool(data.get("enabled", True)),
        active=bool(data["active"]),
        triggered_at=_decode_timestamp(data.get("triggered_at")),
        pulse_duration=_number(data, "pulse_duration", "alarm", default=0.0),
        voice_warning=_optional_str(data, "voice_warning"),
    )


def decode_model_load(payload: object) -> ModelLoadResult:
    """Decode a ``POST /model/load`` response body."""
    data = _require_mapping(payload, "model load")
    return ModelLoadResult(
        success=bool(data.get("success", False)),
        message=str(data.get("message", "")),
    )
