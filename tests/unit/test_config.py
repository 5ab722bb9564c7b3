"""Unit tests for console configuration."""

import pytest

from edge_console.cli import parse_args
from edge_console.config import ConsoleConfig
from edge_console.errors import ValidationError
from edge_console.pipeline.types import DeviceLocation


class TestConsoleConfig:
    """Tests for ConsoleConfig defaults and validation."""

    def test_defaults(self):
        """Defaults match the documented intervals and capacities."""
        config = ConsoleConfig()

        assert config.fps == 2.0
        assert config.request_timeout_s == 3.0
        assert config.health_interval_s == 5.0
        assert config.alarm_interval_s == 3.0
        assert config.latency_capacity == 60
        assert config.event_capacity == 50
        assert config.location is None

    @pytest.mark.parametrize(
        "values",
        [{"fps": 0}, {"request_timeout_s": -1}, {"health_interval_s": 0}, {"event_capacity": 0}],
    )
    def test_invalid_values(self, values):
        """Non-positive rates and capacities are rejected."""
        with pytest.raises(ValidationError):
            ConsoleConfig(**values)


class TestFromEnv:
    """Tests for environment loading."""

    def test_reads_prefixed_variables(self):
        """Typed fields are coerced from strings."""
        config = ConsoleConfig.from_env(
            {
                "EDGE_CONSOLE_BASE_URL": "http://10.0.0.5:8000",
                "EDGE_CONSOLE_FPS": "5",
                "EDGE_CONSOLE_SHOW_OVERLAY": "false",
                "EDGE_CONSOLE_PREVIEW_PORT": "6000",
                "UNRELATED": "x",
            }
        )

        assert config.base_url == "http://10.0.0.5:8000"
        assert config.fps == 5.0
        assert config.show_overlay is False
        assert config.preview_port == 6000

    def test_invalid_number(self):
        """Unparseable numbers are validation errors."""
        with pytest.raises(ValidationError):
            ConsoleConfig.from_env({"EDGE_CONSOLE_FPS": "fast"})

    def test_location(self):
        """Latitude and longitude become a DeviceLocation."""
        config = ConsoleConfig.from_env(
            {"EDGE_CONSOLE_LAT": "52.52", "EDGE_CONSOLE_LNG": "13.405"}
        )

        assert config.location == DeviceLocation(52.52, 13.405)
        assert str(config.location) == "52.520000, 13.405000"

    def test_location_out_of_range(self):
        """Latitude beyond 90 degrees is rejected."""
        with pytest.raises(ValidationError):
            ConsoleConfig.from_env({"EDGE_CONSOLE_LAT": "91", "EDGE_CONSOLE_LNG": "0"})


class TestWithOverrides:
    """Tests for CLI overrides."""

    def test_given_flags_override(self):
        """Only flags that were passed replace config values."""
        base = ConsoleConfig(preview_port=7000)
        args = parse_args(["--fps", "4", "--timeout", "1.5", "--no-overlay"])

        config = base.with_overrides(args)

        assert config.fps == 4.0
        assert config.request_timeout_s == 1.5
        assert config.show_overlay is False
        assert config.preview_port == 7000

    def test_lat_without_lng(self):
        """A location needs both coordinates."""
        with pytest.raises(ValidationError):
            ConsoleConfig().with_overrides(parse_args(["--lat", "10"]))

    def test_invalid_fps_override(self):
        """Overrides are validated like any other value."""
        with pytest.raises(ValidationError):
            ConsoleConfig().with_overrides(parse_args(["--fps", "0"]))
