"""Console configuration resolved from defaults, environment and CLI flags."""

from __future__ import annotations

import os
from dataclasses import dataclass, fields, replace
from typing import TYPE_CHECKING, Any

from edge_console.errors import ValidationError
from edge_console.pipeline.types import DeviceLocation


if TYPE_CHECKING:
    import argparse


ENV_PREFIX = "EDGE_CONSOLE_"

_TRUTHY = {"1", "true", "yes", "on"}


def _env_bool(raw: str) -> bool:
    return raw.strip().lower() in _TRUTHY


@dataclass(frozen=True)
class ConsoleConfig:
    """Settings for one console session against one device."""

    base_url: str = "http://127.0.0.1:8000"
    device_id: str = "edge-device"
    device_label: str = "Edge device"
    request_timeout_s: float = 3.0
    fps: float = 2.0
    show_overlay: bool = True
    health_interval_s: float = 5.0
    alarm_interval_s: float = 3.0
    latency_capacity: int = 60
    rate_window_ms: float = 60_000.0
    event_capacity: int = 50
    max_display_width: int = 800
    max_display_height: int = 600
    preview_host: str = "127.0.0.1"
    preview_port: int = 5000
    jpeg_quality: int = 70
    log_level: str = "INFO"
    log_dir: str = "logs"
    json_logs: bool = False
    location: DeviceLocation | None = None

    def __post_init__(self) -> None:
        if self.fps <= 0:
            message = f"fps must be positive, got {self.fps}"
            raise ValidationError(message)
        if self.request_timeout_s <= 0:
            message = f"request timeout must be positive, got {self.request_timeout_s}"
            raise ValidationError(message)
        if self.health_interval_s <= 0 or self.alarm_interval_s <= 0:
            message = "poll intervals must be positive"
            raise ValidationError(message)
        if self.latency_capacity < 1 or self.event_capacity < 1:
            message = "buffer capacities must be at least 1"
            raise ValidationError(message)

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> ConsoleConfig:
        """Build a config from ``EDGE_CONSOLE_*`` environment variables."""
        env = os.environ if environ is None else environ
        values: dict[str, Any] = {}
        for item in fields(cls):
            if item.name == "location":
                continue
            raw = env.get(ENV_PREFIX + item.name.upper())
            if raw is None:
                continue
            values[item.name] = _coerce(item.name, item.type, raw)

        lat = env.get(ENV_PREFIX + "LAT")
        lng = env.get(ENV_PREFIX + "LNG")
        if lat is not None and lng is not None:
            values["location"] = _parse_location(lat, lng)
        return cls(**values)

    def with_overrides(self, args: argparse.Namespace) -> ConsoleConfig:
        """Apply CLI flags that were explicitly given."""
        overrides: dict[str, Any] = {}
        mapping = {
            "base_url": "base_url",
            "fps": "fps",
            "timeout": "request_timeout_s",
            "preview_host": "preview_host",
            "preview_port": "preview_port",
            "log_level": "log_level",
            "log_dir": "log_dir",
        }
        for arg_name, field_name in mapping.items():
            value = getattr(args, arg_name, None)
            if value is not None:
                overrides[field_name] = value
        if getattr(args, "no_overlay", False):
            overrides["show_overlay"] = False
        if getattr(args, "json_logs", False):
            overrides["json_logs"] = True
        lat = getattr(args, "lat", None)
        lng = getattr(args, "lng", None)
        if lat is not None or lng is not None:
            if lat is None or lng is None:
                message = "Both --lat and --lng are required to set a location"
                raise ValidationError(message)
            overrides["location"] = DeviceLocation(lat=lat, lng=lng)
        return replace(self, **overrides)


def _parse_location(lat: str, lng: str) -> DeviceLocation:
    try:
        return DeviceLocation(lat=float(lat), lng=float(lng))
    except ValueError as exc:
        if isinstance(exc, ValidationError):
            raise
        message = "Please enter valid latitude and longitude values"
        raise ValidationError(message) from exc


def _coerce(name: str, type_name: object, raw: str) -> Any:
    type_text = str(type_name)
    try:
        if type_text.startswith("bool"):
            return _env_bool(raw)
        if type_text.startswith("int"):
            return int(raw)
        if type_text.startswith("float"):
            return float(raw)
    except ValueError as exc:
        message = f"Invalid value for {ENV_PREFIX}{name.upper()}: {raw!r}"
        raise ValidationError(message) from exc
    return raw
