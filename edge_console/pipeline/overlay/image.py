"""Image decode/encode helpers at the display boundary."""

from __future__ import annotations

import base64
import binascii

import cv2
import numpy as np
from loguru import logger

from edge_console.errors import DecodeError


MAX_DISPLAY_WIDTH = 800
MAX_DISPLAY_HEIGHT = 600


def strip_data_url(image_base64: str) -> str:
    """Drop a ``data:image/...;base64,`` prefix if present."""
    if image_base64.startswith("data:") and "," in image_base64:
        return image_base64.split(",", 1)[1]
    return image_base64


def encode_base64_image(raw: bytes) -> str:
    """Encode raw image bytes for an inference request body."""
    return base64.b64encode(raw).decode("ascii")


def decode_image_bytes(raw: bytes) -> np.ndarray:
    """Decode encoded image bytes (PNG/JPEG) into a BGR frame."""
    if not raw:
        message = "Cannot decode an empty image"
        raise DecodeError(message)
    frame = cv2.imdecode(np.frombuffer(raw, dtype=np.uint8), cv2.IMREAD_COLOR)
    if frame is None or frame.size == 0:
        message = f"Undecodable image payload ({len(raw)} bytes)"
        raise DecodeError(message)
    return frame


def decode_image(image_base64: str) -> np.ndarray:
    """Decode a base64 image (optionally a data URL) into a BGR frame."""
    try:
        raw = base64.b64decode(strip_data_url(image_base64), validate=True)
    except (binascii.Error, ValueError) as exc:
        message = "Returned image is not valid base64"
        raise DecodeError(message) from exc
    return decode_image_bytes(raw)


def fit_display_size(
    width: int,
    height: int,
    max_width: int = MAX_DISPLAY_WIDTH,
    max_height: int = MAX_DISPLAY_HEIGHT,
) -> tuple[int, int]:
    """Fit an image into the display box while keeping its aspect ratio."""
    if width <= 0 or height <= 0:
        message = f"Image has no area: {width}x{height}"
        raise DecodeError(message)
    aspect = width / height
    display_w = float(max_width)
    display_h = max_width / aspect
    if display_h > max_height:
        display_h = float(max_height)
        display_w = max_height * aspect
    return max(1, round(display_w)), max(1, round(display_h))


def encode_jpeg(frame: np.ndarray, quality: int = 70) -> bytes | None:
    """Encode a BGR frame as JPEG, returning None if OpenCV refuses it."""
    ok, buffer = cv2.imencode(".jpg", frame, [cv2.IMWRITE_JPEG_QUALITY, quality])
    if not ok:
        logger.warning("Frame encoding failed; skipping frame...")
        return None
    return buffer.tobytes()
