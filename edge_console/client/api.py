"""Async HTTP client for the remote edge-inference device."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any
from urllib.parse import urlencode

import httpx
from loguru import logger

from edge_console.client.codec import (
    decode_alarm_status,
    decode_health,
    decode_inference_response,
    decode_model_load,
    encode_alarm_action,
    encode_inference_request,
)
from edge_console.errors import DecodeError, RemoteError, RequestTimeout


if TYPE_CHECKING:
    from types import TracebackType

    from edge_console.pipeline.types import (
        AlarmAction,
        AlarmStatus,
        HealthStatus,
        InferenceRequest,
        InferenceResponse,
        ModelLoadResult,
    )


DEFAULT_TIMEOUT_S = 3.0


class EdgeDeviceClient:
    """Thin request/response wrapper around the device's HTTP API.

    Every call is a single attempt. Transport failures and non-2xx answers are
    mapped onto the console's exception types; nothing is retried here.

    Example:
        >>> async with EdgeDeviceClient("http://10.0.0.5:8000") as client:
        ...     health = await client.get_health()
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout_s: float = DEFAULT_TIMEOUT_S,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Create the client.

        Args:
            base_url: Device root URL, e.g. ``http://10.0.0.5:8000``.
            timeout_s: Ceiling for every request, connect included.
            transport: Optional transport override (used by tests).
        """
        self.base_url = base_url.rstrip("/")
        self.timeout_s = timeout_s
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(timeout_s),
            transport=transport,
            headers={"Accept": "application/json"},
        )

    async def __aenter__(self) -> EdgeDeviceClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying connection pool."""
        await self._client.aclose()

    async def _request(
        self, method: str, path: str, *, json: dict[str, Any] | None = None
    ) -> httpx.Response:
        # httpx limits each phase separately; wait_for caps the whole call
        try:
            response = await asyncio.wait_for(
                self._client.request(method, path, json=json), self.timeout_s
            )
        except (asyncio.TimeoutError, httpx.TimeoutException) as exc:
            message = f"{method} {path} timed out after {self.timeout_s:.1f}s"
            raise RequestTimeout(message) from exc
        except httpx.HTTPError as exc:
            message = f"{method} {path} failed: {exc}"
            raise RemoteError(message) from exc

        if response.is_error:
            detail = response.text[:200]
            message = f"{method} {path} returned HTTP {response.status_code}"
            raise RemoteError(message, status_code=response.status_code, detail=detail)
        return response

    async def _request_json(
        self, method: str, path: str, *, json: dict[str, Any] | None = None
    ) -> object:
        response = await self._request(method, path, json=json)
        try:
            return response.json()
        except ValueError as exc:
            message = f"{method} {path} returned invalid JSON"
            raise DecodeError(message) from exc

    async def get_health(self) -> HealthStatus:
        """Fetch ``GET /health``."""
        return decode_health(await self._request_json("GET", "/health"))

    async def load_model(self) -> ModelLoadResult:
        """Ask the device to load its detection model."""
        result = decode_model_load(await self._request_json("POST", "/model/load"))
        logger.info("Model load: success={} message={}", result.success, result.message)
        return result

    async def infer(self, request: InferenceRequest) -> InferenceResponse:
        """Run one inference on the device."""
        payload = await self._request_json(
            "POST", "/infer", json=encode_inference_request(request)
        )
        return decode_inference_response(payload)

    async def get_alarm(self) -> AlarmStatus:
        """Fetch ``GET /alarm``."""
        return decode_alarm_status(await self._request_json("GET", "/alarm"))

    async def control_alarm(self, action: AlarmAction) -> AlarmStatus:
        """Send an alarm action and return the resulting status."""
        payload = await self._request_json(
            "POST", "/alarm", json=encode_alarm_action(action)
        )
        return decode_alarm_status(payload)

    async def capture(self) -> bytes:
        """Grab a single raw frame with ``GET /capture``."""
        response = await self._request("GET", "/capture")
        if not response.content:
            message = "GET /capture returned an empty body"
            raise DecodeError(message)
        return response.content

    def stream_url(self, fps: float, *, overlay: bool = True) -> str:
        """Return the device's own MJPEG stream URL for display-only mode."""
        fps_text = f"{fps:g}"
        query = urlencode({"fps": fps_text, "overlay": str(overlay).lower()})
        return f"{self.base_url}/stream?{query}"
