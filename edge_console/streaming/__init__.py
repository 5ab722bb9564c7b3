"""Preview server for annotated frames and telemetry."""

from __future__ import annotations

from edge_console.streaming.app import create_app, start_preview_server
from edge_console.streaming.generator import gen_frames, multipart_chunk
from edge_console.streaming.state import PreviewState, to_jsonable


__all__ = [
    "PreviewState",
    "create_app",
    "gen_frames",
    "multipart_chunk",
    "start_preview_server",
    "to_jsonable",
]
