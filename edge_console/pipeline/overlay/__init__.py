"""Overlay rendering and image helpers."""

from __future__ import annotations

from edge_console.pipeline.overlay.image import (
    MAX_DISPLAY_HEIGHT,
    MAX_DISPLAY_WIDTH,
    decode_image,
    decode_image_bytes,
    encode_base64_image,
    encode_jpeg,
    fit_display_size,
    strip_data_url,
)
from edge_console.pipeline.overlay.renderer import (
    OverlayBox,
    OverlayRenderer,
    OverlaySurface,
    compose,
    format_label,
    scale_box,
)


__all__ = [
    "MAX_DISPLAY_HEIGHT",
    "MAX_DISPLAY_WIDTH",
    "OverlayBox",
    "OverlayRenderer",
    "OverlaySurface",
    "compose",
    "decode_image",
    "decode_image_bytes",
    "encode_base64_image",
    "encode_jpeg",
    "fit_display_size",
    "format_label",
    "scale_box",
    "strip_data_url",
]
