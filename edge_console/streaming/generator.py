"""Helpers for streaming encoded frames."""

from __future__ import annotations

import time
from typing import TYPE_CHECKING

from loguru import logger


if TYPE_CHECKING:
    from collections.abc import Iterator

    from edge_console.streaming.state import PreviewState


def multipart_chunk(frame_bytes: bytes) -> bytes:
    """Wrap one JPEG in a ``multipart/x-mixed-replace`` part."""
    return b"--frame\r\nContent-Type: image/jpeg\r\n\r\n" + frame_bytes + b"\r\n\r\n"


def gen_frames(
    state: PreviewState,
    wait_for_frame: float = 0.1,
    max_frames: int | None = None,
) -> Iterator[bytes]:
    """Yield each new annotated frame as an MJPEG chunk."""
    logger.info("Starting preview stream...")
    last_id = 0
    sent = 0
    while max_frames is None or sent < max_frames:
        frame_id, jpeg = state.latest_jpeg()
        if jpeg is None or frame_id == last_id:
            time.sleep(wait_for_frame)
            continue
        last_id = frame_id
        sent += 1
        yield multipart_chunk(jpeg)
