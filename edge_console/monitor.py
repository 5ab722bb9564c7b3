from __future__ import annotations

import asyncio
import platform
import time
from pathlib import Path
from typing import TYPE_CHECKING

from loguru import logger

from edge_console.cli import parse_args
from edge_console.client import EdgeDeviceClient
from edge_console.config import ConsoleConfig
from edge_console.errors import EdgeConsoleError, PreconditionFailed, ValidationError
from edge_console.events import CycleFailed, DetectionRecorded, StatsUpdated
from edge_console.logging_config import (
    attach_log_buffer,
    configure_logging,
    create_log_buffer,
)
from edge_console.pipeline.detections import export_csv
from edge_console.pipeline.overlay import encode_base64_image
from edge_console.scheduling import (
    AlarmController,
    AlarmPoller,
    HealthPoller,
    StreamingScheduler,
)
from edge_console.session import SessionContext
from edge_console.streaming import PreviewState, start_preview_server


if TYPE_CHECKING:
    import argparse

    import httpx

    from edge_console.pipeline.types import ModelLoadResult


class EdgeConsole:
    """Wire the scheduler, pollers and alarm controller to one session."""

    def __init__(self, session: SessionContext) -> None:
        self.session = session
        self.scheduler = StreamingScheduler(session)
        self.health_poller = HealthPoller(session)
        self.alarm_poller = AlarmPoller(session)
        self.alarm = AlarmController(session)

    async def load_model(self) -> ModelLoadResult:
        """Load the device model and refresh health on success."""
        result = await self.session.client.load_model()
        if result.success:
            logger.success("Model loaded: {}", result.message)
            await self.health_poller.refresh()
        else:
            logger.error("Model load failed: {}", result.message)
        return result

    def start_polling(self) -> None:
        self.health_poller.start()
        self.alarm_poller.start()

    async def shutdown(self) -> None:
        """Stop every timer and let in-flight work settle."""
        self.scheduler.stop()
        self.health_poller.stop()
        self.alarm_poller.stop()
        await self.scheduler.wait_idle()
        await self.health_poller.wait_idle()
        await self.alarm_poller.wait_idle()

    def log_summary(self) -> None:
        stats = self.session.telemetry.snapshot()
        logger.info("-" * 60)
        logger.info("Frames processed: {}", stats.total_frames)
        logger.info(
            "Latency: avg {:.1f} ms | p95 {:.1f} ms",
            stats.avg_latency_ms,
            stats.p95_latency_ms,
        )
        logger.info("Detections (last 60s): {:.0f}", stats.detections_per_minute)
        logger.info("Detection events stored: {}", len(self.session.events))
        logger.info("Ticks dropped while busy: {}", self.scheduler.dropped_ticks)
        logger.info("-" * 60)


def _attach_activity_log(session: SessionContext, log_interval: float = 2.0) -> None:
    last_log_time = 0.0

    def _on_stats(event: StatsUpdated) -> None:
        nonlocal last_log_time
        now = time.perf_counter()
        if now - last_log_time < log_interval:
            return
        last_log_time = now
        stats = event.stats
        logger.info(
            "Frames: {} | Latency avg {:.1f} ms, p95 {:.1f} ms | Detections/min: {:.0f}",
            stats.total_frames,
            stats.avg_latency_ms,
            stats.p95_latency_ms,
            stats.detections_per_minute,
        )

    def _on_detection(event: DetectionRecorded) -> None:
        logger.info(
            "Detection {}: {}", event.event.id, ", ".join(event.event.labels)
        )

    def _on_failure(event: CycleFailed) -> None:
        logger.debug("Cycle failure published: {}", event.error)

    session.bus.subscribe(StatsUpdated, _on_stats)
    session.bus.subscribe(DetectionRecorded, _on_detection)
    session.bus.subscribe(CycleFailed, _on_failure)


async def _send_alarm(console: EdgeConsole, args: argparse.Namespace) -> int:
    try:
        if args.alarm == "activate":
            status = await console.alarm.activate()
        elif args.alarm == "deactivate":
            status = await console.alarm.deactivate()
        else:
            status = await console.alarm.trigger(args.pulse_duration)
    except EdgeConsoleError:
        return 1
    logger.info(
        "Alarm status: active={} triggered_at={}", status.active, status.triggered_at
    )
    return 0


async def _run_single_image(console: EdgeConsole, image_path: str) -> int:
    path = Path(image_path)
    if not path.is_file():
        logger.error("Image not found: {}", path)
        return 1
    try:
        response = await console.scheduler.process_image(
            encode_base64_image(path.read_bytes())
        )
    except EdgeConsoleError as exc:
        logger.error("Test inference failed: {}", exc)
        return 1
    if response is None:
        return 1
    logger.success(
        "Inference test successful. Found {} detections in {:.1f}ms",
        len(response.detections),
        response.metadata.inference_ms,
    )
    for box in response.detections:
        logger.info(
            "  {} {:.2f} [{:.0f}, {:.0f}, {:.0f}, {:.0f}]",
            box.label,
            box.confidence,
            box.x_min,
            box.y_min,
            box.x_max,
            box.y_max,
        )
    return 0


async def _wait(duration: float | None) -> None:
    if duration is None:
        await asyncio.Event().wait()
    else:
        await asyncio.sleep(duration)


async def run_session(
    args: argparse.Namespace,
    config: ConsoleConfig,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> int:
    """Run one console session described by ``args``."""
    async with EdgeDeviceClient(
        config.base_url, timeout_s=config.request_timeout_s, transport=transport
    ) as client:
        session = SessionContext(config=config, client=client)
        console = EdgeConsole(session)
        _attach_activity_log(session)

        if args.alarm:
            return await _send_alarm(console, args)

        await console.health_poller.poll_once()

        if args.load_model:
            try:
                result = await console.load_model()
            except EdgeConsoleError as exc:
                logger.error("Model load error: {}", exc)
                return 1
            if not result.success:
                return 1

        try:
            if args.image:
                return await _run_single_image(console, args.image)

            if args.preview or args.display_only:
                stream_url = (
                    client.stream_url(config.fps, overlay=config.show_overlay)
                    if args.display_only
                    else None
                )
                log_buffer = create_log_buffer()
                attach_log_buffer(log_buffer, config.log_level)
                state = PreviewState(
                    jpeg_quality=config.jpeg_quality,
                    stream_url=stream_url,
                    log_buffer=log_buffer,
                )
                state.attach(session)
                start_preview_server(state, config.preview_host, config.preview_port)

            console.start_polling()
            if args.display_only:
                logger.info("Display-only mode; device stream at {}", stream_url)
            else:
                try:
                    console.scheduler.start()
                except PreconditionFailed:
                    logger.error("Use --load-model or load the model on the device first")
                    return 1

            await _wait(args.duration)
            return 0
        finally:
            await console.shutdown()
            if not args.image:
                console.log_summary()
            if args.export_csv:
                export_csv(session.events.events(), args.export_csv)


def run_console(
    argv: list[str] | None = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> int:
    """Entry point for the edge console."""
    args = parse_args(argv)
    try:
        config = ConsoleConfig.from_env().with_overrides(args)
    except ValidationError as exc:
        logger.error("Invalid configuration: {}", exc)
        return 2

    configure_logging(config.log_level, config.log_dir, json_logs=config.json_logs)

    logger.info("=" * 60)
    logger.info("Edge Console - {} ({})", config.device_label, config.device_id)
    logger.info("=" * 60)
    logger.info("Platform: {} {}", platform.system(), platform.release())
    logger.info("Python: {}", platform.python_version())
    logger.info("Device: {}", config.base_url)
    logger.info("Requested rate: {:g} FPS", config.fps)
    if config.location is not None:
        logger.info("Location: {}", config.location)

    try:
        return asyncio.run(run_session(args, config, transport=transport))
    except KeyboardInterrupt:
        logger.info("Shutting down console")
        return 0
    except Exception:
        logger.exception("Console crashed due to an unexpected error")
        return 1
