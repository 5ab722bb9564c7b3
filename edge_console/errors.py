"""Exception types raised by the edge console."""

from __future__ import annotations


class EdgeConsoleError(Exception):
    """Base class for every recoverable console failure."""


class PreconditionFailed(EdgeConsoleError):
    """An operation needs state the device does not report yet (e.g. a loaded model)."""


class RequestTimeout(EdgeConsoleError):
    """The device did not answer within the request deadline."""


class RemoteError(EdgeConsoleError):
    """The device answered with a non-success status or the transport failed."""

    def __init__(
        self, message: str, *, status_code: int | None = None, detail: str = ""
    ) -> None:
        """Store the HTTP status (if any) next to the message."""
        super().__init__(message)
        self.status_code = status_code
        self.detail = detail


class DecodeError(EdgeConsoleError):
    """A response payload or returned image could not be decoded."""


class ValidationError(EdgeConsoleError, ValueError):
    """Caller-supplied input is invalid."""


__all__ = [
    "DecodeError",
    "EdgeConsoleError",
    "PreconditionFailed",
    "RemoteError",
    "RequestTimeout",
    "ValidationError",
]
