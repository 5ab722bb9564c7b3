from __future__ import annotations

import argparse


def parse_args(argv: list | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Edge inference device console: streaming, telemetry and alarm control",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  edge-console --base-url http://10.0.0.5:8000 --fps 2 --preview
  edge-console --load-model --duration 60 --export-csv exports/
  edge-console --image sample.jpg
  edge-console --alarm trigger --pulse-duration 2
		""",
    )

    parser.add_argument("--base-url", type=str, default=None)
    parser.add_argument("--fps", type=float, default=None)
    parser.add_argument(
        "--timeout", type=float, default=None, help="Request timeout in seconds"
    )
    parser.add_argument("--no-overlay", action="store_true")
    parser.add_argument(
        "--load-model",
        action="store_true",
        help="Ask the device to load its model before streaming",
    )
    parser.add_argument(
        "--image",
        type=str,
        default=None,
        help="Run a single inference on a local image instead of streaming",
    )
    parser.add_argument(
        "--duration",
        type=float,
        default=None,
        help="Stop streaming after this many seconds (default: run until Ctrl+C)",
    )
    parser.add_argument(
        "--preview",
        action="store_true",
        help="Serve annotated frames and stats over HTTP",
    )
    parser.add_argument(
        "--display-only",
        action="store_true",
        help="Only show the device's own stream; no inference cycle",
    )
    parser.add_argument("--preview-host", type=str, default=None)
    parser.add_argument("--preview-port", type=int, default=None)
    parser.add_argument(
        "--export-csv",
        type=str,
        default=None,
        help="Write detection events to this CSV file (or directory) on exit",
    )
    parser.add_argument(
        "--alarm",
        type=str,
        choices=["activate", "deactivate", "trigger"],
        default=None,
        help="Send one alarm action and exit",
    )
    parser.add_argument("--pulse-duration", type=float, default=None)
    parser.add_argument("--lat", type=float, default=None)
    parser.add_argument("--lng", type=float, default=None)
    parser.add_argument("--log-dir", type=str, default=None)
    parser.add_argument("--json-logs", action="store_true")
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        choices=["TRACE", "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
    )

    return parser.parse_args(argv)
