"""Paint detection overlays onto a display surface."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

import cv2
import numpy as np

from edge_console.errors import ValidationError


if TYPE_CHECKING:
    from collections.abc import Sequence

    from edge_console.pipeline.types import BoundingBox


BOX_COLOR = (246, 130, 59, 255)
TAG_COLOR = (246, 130, 59, 204)
TEXT_COLOR = (255, 255, 255, 255)
FONT = cv2.FONT_HERSHEY_SIMPLEX
FONT_SCALE = 0.45
TAG_PADDING = 4


@dataclass(frozen=True)
class OverlayBox:
    """A bounding box mapped into surface pixels."""

    x: float
    y: float
    width: float
    height: float
    label: str


def format_label(box: BoundingBox) -> str:
    """Return ``"<label> (<confidence %>%)"`` with the percentage rounded."""
    percent = int(box.confidence * 100 + 0.5)
    return f"{box.label} ({percent}%)"


def scale_box(box: BoundingBox, scale_x: float, scale_y: float) -> OverlayBox:
    """Map a source-space box into surface space."""
    return OverlayBox(
        x=box.x_min * scale_x,
        y=box.y_min * scale_y,
        width=(box.x_max - box.x_min) * scale_x,
        height=(box.y_max - box.y_min) * scale_y,
        label=format_label(box),
    )


class OverlaySurface:
    """Transparent BGRA layer that overlays are painted on."""

    def __init__(self, width: int, height: int) -> None:
        if width <= 0 or height <= 0:
            message = f"Surface needs a positive size, got {width}x{height}"
            raise ValidationError(message)
        self.pixels = np.zeros((height, width, 4), dtype=np.uint8)

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    def clear(self) -> None:
        self.pixels[:] = 0

    def is_blank(self) -> bool:
        return not self.pixels[..., 3].any()


def compose(frame: np.ndarray, surface: OverlaySurface) -> np.ndarray:
    """Alpha-blend the overlay layer on top of a BGR frame of the same size."""
    if frame.shape[:2] != surface.pixels.shape[:2]:
        message = (
            f"Frame {frame.shape[1]}x{frame.shape[0]} does not match surface "
            f"{surface.width}x{surface.height}"
        )
        raise ValidationError(message)
    alpha = surface.pixels[..., 3:4].astype(np.float32) / 255.0
    colors = surface.pixels[..., :3].astype(np.float32)
    blended = frame.astype(np.float32) * (1.0 - alpha) + colors * alpha
    return np.clip(blended, 0, 255).astype(np.uint8)


class OverlayRenderer:
    """Draw scaled bounding boxes and label tags.

    Every ``paint`` call starts from a cleared surface, so overlays never
    accumulate across frames.
    """

    def __init__(self, *, enabled: bool = True, line_width: int = 2) -> None:
        self.enabled = enabled
        self.line_width = line_width

    def toggle(self) -> bool:
        self.enabled = not self.enabled
        return self.enabled

    def paint(
        self,
        surface: OverlaySurface,
        detections: Sequence[BoundingBox],
        source_width: float,
        source_height: float,
    ) -> list[OverlayBox]:
        """Paint ``detections`` onto ``surface`` and return the drawn boxes."""
        surface.clear()
        if not self.enabled:
            return []
        if source_width <= 0 or source_height <= 0:
            message = f"Invalid source size {source_width}x{source_height}"
            raise ValidationError(message)

        scale_x = surface.width / source_width
        scale_y = surface.height / source_height
        boxes = [scale_box(det, scale_x, scale_y) for det in detections]
        for box in boxes:
            self._draw_box(surface, box)
        return boxes

    def _draw_box(self, surface: OverlaySurface, box: OverlayBox) -> None:
        x0 = round(box.x)
        y0 = round(box.y)
        x1 = round(box.x + box.width)
        y1 = round(box.y + box.height)
        cv2.rectangle(surface.pixels, (x0, y0), (x1, y1), BOX_COLOR, self.line_width)

        # tag sits directly above the top edge
        (tw, th), _ = cv2.getTextSize(box.label, FONT, FONT_SCALE, 1)
        tag_top = y0 - th - 2 * TAG_PADDING
        cv2.rectangle(
            surface.pixels,
            (x0, tag_top),
            (x0 + tw + 2 * TAG_PADDING, y0),
            TAG_COLOR,
            -1,
        )
        cv2.putText(
            surface.pixels,
            box.label,
            (x0 + TAG_PADDING, y0 - TAG_PADDING - 2),
            FONT,
            FONT_SCALE,
            TEXT_COLOR,
            1,
            cv2.LINE_AA,
        )
