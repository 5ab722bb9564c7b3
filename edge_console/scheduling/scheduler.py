"""Capture -> infer -> record -> paint -> append streaming loop."""

from __future__ import annotations

import time
from datetime import datetime, timezone
from typing import TYPE_CHECKING

import cv2
from loguru import logger

from edge_console.errors import (
    DecodeError,
    EdgeConsoleError,
    PreconditionFailed,
    ValidationError,
)
from edge_console.events import (
    CycleFailed,
    DetectionRecorded,
    FrameProcessed,
    FrameRendered,
    PreconditionReported,
    StatsUpdated,
    StreamStateChanged,
)
from edge_console.pipeline.overlay import (
    OverlaySurface,
    compose,
    decode_image,
    fit_display_size,
    strip_data_url,
)
from edge_console.pipeline.types import (
    CaptureRequest,
    DetectionEvent,
    InferenceRequest,
    InferenceResponse,
    StreamState,
    SuppliedImageRequest,
)
from edge_console.scheduling.ticker import IntervalTicker, SingleFlight


if TYPE_CHECKING:
    from edge_console.session import SessionContext


MODEL_NOT_LOADED = "Model not loaded. Load the detection model before running inference."


class StreamingScheduler:
    """Drive inference cycles against the device at a fixed rate.

    At most one cycle is in flight. Ticks that arrive while a cycle is still
    waiting on the device are dropped, not queued. Stopping cancels only the
    timer: a cycle that is already running completes and is recorded.
    """

    def __init__(self, session: SessionContext, *, fps: float | None = None) -> None:
        """Create a stopped scheduler bound to ``session``."""
        self.session = session
        self.fps = _validate_fps(fps if fps is not None else session.config.fps)
        self.state = StreamState.STOPPED
        self.skipped_ticks = 0
        self._ticker =IntervalTicker(1.0 / self.fps, self._on_tick, name="stream")
        self._flight = SingleFlight("inference")

    @property
    def running(self) -> bool:
        return self.state is StreamState.RUNNING

    @property
    def busy(self) -> bool:
        return self._flight.busy

    @property
    def dropped_ticks(self) -> int:
        return self._flight.dropped

    @property
    def interval_s(self) -> float:
        return 1.0 / self.fps

    def _require_model(self, action: str) -> None:
        if self.session.model_loaded:
            return
        logger.warning("Cannot {}: model not loaded", action)
        self.session.bus.publish(PreconditionReported(MODEL_NOT_LOADED))
        raise PreconditionFailed(MODEL_NOT_LOADED)

    def start(self) -> None:
        """Begin streaming; requires the device to report its model loaded.

        Raises:
            PreconditionFailed: if the model is not loaded. State stays stopped.
        """
        if self.running:
            return
        self._require_model("start streaming")
        self._ticker.start(self.interval_s)
        self.state = StreamState.RUNNING
        logger.info("Streaming started at {:g} FPS", self.fps)
        self.session.bus.publish(StreamStateChanged(self.state, self.fps))

    def stop(self) -> None:
        """Stop the timer. An in-flight cycle is left to finish."""
        if not self.running:
            return
        self._ticker.stop()
        self.state = StreamState.STOPPED
        logger.info(
            "Streaming stopped ({} frames, {} ticks dropped)",
            self.session.telemetry.total_frames,
            self.dropped_ticks,
        )
        self.session.bus.publish(StreamStateChanged(self.state, self.fps))

    def set_fps(self, fps: float) -> None:
        """Change the rate; a running stream restarts its timer immediately."""
        self.fps = _validate_fps(fps)
        if self.running:
            self._ticker.restart(self.interval_s)
            logger.info("Stream rate changed to {:g} FPS", self.fps)
            self.session.bus.publish(StreamStateChanged(self.state, self.fps))

    def _on_tick(self) -> None:
        # the model can be unloaded while streaming; keep the timer, skip the call
        if not self.session.model_loaded:
            self.skipped_ticks += 1
            logger.debug("Tick skipped: model not loaded")
            self.session.bus.publish(PreconditionReported(MODEL_NOT_LOADED))
            return
        self._flight.launch(lambda: self._run_cycle(CaptureRequest()))

    async def capture_frame(self) -> InferenceResponse | None:
        """Run one cycle on a frame captured by the device camera."""
        return await self._run_manual(CaptureRequest())

    async def process_image(self, image_base64: str) -> InferenceResponse | None:
        """Run one cycle on a caller-supplied base64 image."""
        request = SuppliedImageRequest(image_base64=strip_data_url(image_base64))
        return await self._run_manual(request)

    async def _run_manual(self, request: InferenceRequest) -> InferenceResponse | None:
        self._require_model("run inference")
        task = self._flight.launch(lambda: self._run_cycle(request, raise_errors=True))
        if task is None:
            message = "An inference cycle is already in flight"
            raise PreconditionFailed(message)
        return await task

    async def wait_idle(self) -> None:
        """Wait until the in-flight cycle (if any) has settled."""
        await self._flight.wait()

    async def _run_cycle(
        self, request: InferenceRequest, *, raise_errors: bool = False
    ) -> InferenceResponse | None:
        started = time.perf_counter()
        try:
            response = await self.session.client.infer(request)
        except EdgeConsoleError as exc:
            self._report_failure(exc)
            if raise_errors:
                raise
            return None
        except Exception:
            logger.exception("Unexpected error during inference cycle")
            if raise_errors:
                raise
            return None

        latency_ms = (time.perf_counter() - started) * 1000.0
        self._record(response, latency_ms)
        return response

    def _record(self, response: InferenceResponse, latency_ms: float) -> None:
        session = self.session
        now_ms = time.monotonic() * 1000.0
        count = len(response.detections)

        session.telemetry.record_latency(latency_ms)
        session.telemetry.record_detections(count, now_ms)
        stats = session.telemetry.snapshot(now_ms)
        session.last_frame_time = datetime.now(timezone.utc)
        logger.debug("Cycle done: {:.1f} ms, {} detections", latency_ms, count)
        session.bus.publish(FrameProcessed(response, latency_ms))
        session.bus.publish(StatsUpdated(stats))

        try:
            self._paint(response)
        except (DecodeError, ValidationError) as exc:
            self._report_failure(exc)

        if count:
            event = DetectionEvent.from_response(response)
            session.events.append(event)
            session.bus.publish(DetectionRecorded(event))

    def _paint(self, response: InferenceResponse) -> None:
        if not response.encoded_image:
            return
        config = self.session.config
        frame = decode_image(response.encoded_image)
        source_h, source_w = frame.shape[:2]
        display_w, display_h = fit_display_size(
            source_w, source_h, config.max_display_width, config.max_display_height
        )
        display = cv2.resize(frame, (display_w, display_h), interpolation=cv2.INTER_AREA)
        surface = OverlaySurface(display_w, display_h)
        boxes = self.session.renderer.paint(
            surface, response.detections, source_w, source_h
        )
        annotated = compose(display, surface)
        self.session.latest_frame = annotated
        self.session.bus.publish(FrameRendered(annotated, tuple(boxes)))

    def _report_failure(self, exc: EdgeConsoleError) -> None:
        logger.warning("Inference cycle failed: {}: {}", type(exc).__name__, exc)
        self.session.bus.publish(CycleFailed(exc))


def _validate_fps(fps: float) -> float:
    if fps <= 0:
        message = f"fps must be positive, got {fps}"
        raise ValidationError(message)
    return float(fps)
