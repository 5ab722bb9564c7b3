"""Edge Console: streaming, telemetry and alarm control for edge-inference devices."""

from edge_console.client import EdgeDeviceClient
from edge_console.config import ConsoleConfig
from edge_console.errors import (
    DecodeError,
    EdgeConsoleError,
    PreconditionFailed,
    RemoteError,
    RequestTimeout,
    ValidationError,
)
from edge_console.monitor import EdgeConsole, run_console
from edge_console.session import SessionContext


__all__ = [
    "ConsoleConfig",
    "DecodeError",
    "EdgeConsole",
    "EdgeConsoleError",
    "EdgeDeviceClient",
    "PreconditionFailed",
    "RemoteError",
    "RequestTimeout",
    "SessionContext",
    "ValidationError",
    "run_console",
]
