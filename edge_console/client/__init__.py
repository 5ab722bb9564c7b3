"""HTTP client for the remote edge device."""

from __future__ import annotations

from edge_console.client.api import DEFAULT_TIMEOUT_S, EdgeDeviceClient
from edge_console.client.codec import (
    decode_alarm_status,
    decode_bounding_box,
    decode_health,
    decode_inference_response,
    decode_model_load,
    encode_alarm_action,
    encode_inference_request,
)


__all__ = [
    "DEFAULT_TIMEOUT_S",
    "EdgeDeviceClient",
    "decode_alarm_status",
    "decode_bounding_box",
    "decode_health",
    "decode_inference_response",
    "decode_model_load",
    "encode_alarm_action",
    "encode_inference_request",
]
