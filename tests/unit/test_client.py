"""Unit tests for the device HTTP client and payload codec."""

import asyncio
import json
from datetime import datetime, timezone

import httpx
import pytest

from edge_console.client import (
    EdgeDeviceClient,
    decode_alarm_status,
    decode_bounding_box,
    decode_health,
    decode_inference_response,
    encode_alarm_action,
    encode_inference_request,
)
from edge_console.errors import DecodeError, RemoteError, RequestTimeout, ValidationError
from edge_console.pipeline.types import (
    Activate,
    CaptureRequest,
    Deactivate,
    DeviceState,
    SuppliedImageRequest,
    Trigger,
    build_inference_request,
)


def _call(handler, method_name, *args):
    async def scenario():
        async with EdgeDeviceClient(
            "http://device:8000", transport=httpx.MockTransport(handler)
        ) as client:
            return await getattr(client, method_name)(*args)

    return asyncio.run(scenario())


class TestEncoding:
    """Tests for request encoding."""

    def test_capture_request(self):
        """Camera capture omits the image field."""
        assert encode_inference_request(CaptureRequest()) == {
            "capture_from_camera": True,
            "return_image": True,
        }

    def test_supplied_image_request(self):
        """Supplied images are sent as base64."""
        body = encode_inference_request(SuppliedImageRequest("abc", return_image=False))

        assert body == {
            "capture_from_camera": False,
            "image_base64": "abc",
            "return_image": False,
        }

    def test_build_request_needs_a_source(self):
        """Neither camera nor image is a validation error."""
        with pytest.raises(ValidationError):
            build_inference_request(capture_from_camera=False)
        assert isinstance(
            build_inference_request(capture_from_camera=False, image_base64="abc"),
            SuppliedImageRequest,
        )

    def test_alarm_actions(self):
        """Alarm actions carry their verb and optional duration."""
        assert encode_alarm_action(Activate()) == {"action": "activate"}
        assert encode_alarm_action(Deactivate()) == {"action": "deactivate"}
        assert encode_alarm_action(Trigger()) == {"action": "trigger"}
        assert encode_alarm_action(Trigger(2.5)) == {
            "action": "trigger",
            "duration_seconds": 2.5,
        }

    def test_trigger_duration_must_be_positive(self):
        """Zero or negative pulse durations are rejected."""
        with pytest.raises(ValidationError):
            Trigger(0)


class TestDecoding:
    """Tests for response decoding."""

    def test_inference_response(self):
        """Detections and metadata are decoded."""
        response = decode_inference_response(
            {
                "detections": [
                    {
                        "label": "car",
                        "confidence": 0.9,
                        "x_min": 1,
                        "y_min": 2,
                        "x_max": 30,
                        "y_max": 40,
                    }
                ],
                "metadata": {"inference_ms": 12.5, "model_path": "model.onnx"},
                "encoded_image": "abc",
            }
        )

        assert response.detections[0].label == "car"
        assert response.detections[0].width == 29
        assert response.metadata.detection_count == 1
        assert response.metadata.model_path == "model.onnx"
        assert response.encoded_image == "abc"

    @pytest.mark.parametrize(
        "box",
        [
            {"label": "car", "confidence": 1.5, "x_min": 0, "y_min": 0, "x_max": 1, "y_max": 1},
            {"label": "car", "confidence": 0.5, "x_min": 5, "y_min": 0, "x_max": 1, "y_max": 1},
            {"label": 3, "confidence": 0.5, "x_min": 0, "y_min": 0, "x_max": 1, "y_max": 1},
            {"label": "car", "confidence": "high", "x_min": 0, "y_min": 0, "x_max": 1, "y_max": 1},
        ],
    )
    def test_invalid_boxes(self, box):
        """Out-of-range, inverted or mistyped boxes are rejected."""
        with pytest.raises(DecodeError):
            decode_bounding_box(box)

    def test_negative_inference_time(self):
        """Negative inference time is rejected."""
        with pytest.raises(DecodeError):
            decode_inference_response({"detections": [], "metadata": {"inference_ms": -1}})

    def test_health(self):
        """Health sections are decoded with defaults."""
        health = decode_health(
            {
                "status": "ok",
                "camera": {"available": True, "width": 640, "height": 480, "fps": 15},
                "model": {"loaded": True, "path": "m.onnx"},
            }
        )

        assert health.status is DeviceState.OK
        assert health.camera.width == 640
        assert health.model.loaded
        assert health.model.autoload is None

    def test_unknown_health_status(self):
        """Unknown status strings are decode failures."""
        with pytest.raises(DecodeError):
            decode_health({"status": "on fire"})

    def test_alarm_timestamps(self):
        """ISO strings and epoch milliseconds are both accepted."""
        iso = decode_alarm_status({"active": True, "triggered_at": "2024-01-01T00:00:00Z"})
        epoch = decode_alarm_status({"active": True, "triggered_at": 1704067200000})

        expected = datetime(2024, 1, 1, tzinfo=timezone.utc)
        assert iso.triggered_at == expected
        assert epoch.triggered_at == expected

    def test_alarm_requires_active(self):
        """An alarm status without ``active`` is rejected."""
        with pytest.raises(DecodeError):
            decode_alarm_status({"enabled": True})


class TestEdgeDeviceClient:
    """Tests for EdgeDeviceClient over a mock transport."""

    def test_infer_posts_request(self):
        """Infer posts the encoded request and decodes the answer."""
        seen = {}

        def handler(request):
            seen["path"] = request.url.path
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"detections": [], "metadata": {}})

        response = _call(handler, "infer", CaptureRequest())

        assert seen["path"] == "/infer"
        assert seen["body"]["capture_from_camera"] is True
        assert response.detections == ()

    def test_timeout_maps_to_request_timeout(self):
        """Transport timeouts become RequestTimeout."""

        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        with pytest.raises(RequestTimeout):
            _call(handler, "get_health")

    def test_connection_error_maps_to_remote_error(self):
        """Connection failures become RemoteError without a status."""

        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(RemoteError) as excinfo:
            _call(handler, "get_health")
        assert excinfo.value.status_code is None

    def test_http_error_maps_to_remote_error(self):
        """Non-2xx answers carry their status code."""

        def handler(request):
            return httpx.Response(500, text="boom")

        with pytest.raises(RemoteError) as excinfo:
            _call(handler, "get_alarm")
        assert excinfo.value.status_code == 500
        assert excinfo.value.detail == "boom"

    def test_invalid_json_maps_to_decode_error(self):
        """Unparseable bodies become DecodeError."""

        def handler(request):
            return httpx.Response(200, content=b"not json")

        with pytest.raises(DecodeError):
            _call(handler, "get_health")

    def test_control_alarm(self):
        """Alarm actions are posted to /alarm."""
        seen = {}

        def handler(request):
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"active": True, "pulse_duration": 2})

        status = _call(handler, "control_alarm", Trigger(2))

        assert seen["body"] == {"action": "trigger", "duration_seconds": 2}
        assert status.active
        assert status.pulse_duration == 2.0

    def test_load_model(self):
        """Model load results are decoded."""

        def handler(request):
            assert request.url.path == "/model/load"
            return httpx.Response(200, json={"success": False, "message": "missing"})

        result = _call(handler, "load_model")

        assert not result.success
        assert result.message == "missing"

    def test_capture_returns_bytes(self):
        """Capture returns the raw body and rejects an empty one."""
        assert _call(lambda request: httpx.Response(200, content=b"\xff\xd8"), "capture") == b"\xff\xd8"
        with pytest.raises(DecodeError):
            _call(lambda request: httpx.Response(200, content=b""), "capture")

    def test_stream_url(self):
        """Display-only URL carries rate and overlay flag."""
        client = EdgeDeviceClient("http://device:8000/")
        try:
            assert client.stream_url(2.0) == "http://device:8000/stream?fps=2&overlay=true"
            assert (
                client.stream_url(0.5, overlay=False)
                == "http://device:8000/stream?fps=0.5&overlay=false"
            )
        finally:
            asyncio.run(client.aclose())


class TestWholeCallTimeout:
    """Tests for the per-call ceiling against a real socket."""

    def test_slow_body_times_out(self):
        """A body trickling in under the read timeout still hits the call ceiling."""
        body = json.dumps({"detections": [], "metadata": {}}).encode()
        pieces = [body[i : i + 8] for i in range(0, len(body), 8)][:5]

        async def handle(reader, writer):
            try:
                await reader.readuntil(b"\r\n\r\n")
                writer.write(
                    b"HTTP/1.1 200 OK\r\nContent-Type: application/json\r\n"
                    b"Content-Length: %d\r\n\r\n" % len(body)
                )
                await writer.drain()
                for piece in pieces:
                    await asyncio.sleep(0.15)
                    writer.write(piece)
                    await writer.drain()
            except (ConnectionError, asyncio.CancelledError):
                pass
            finally:
                writer.close()

        async def scenario():
            server = await asyncio.start_server(handle, "127.0.0.1", 0)
            port = server.sockets[0].getsockname()[1]
            loop = asyncio.get_running_loop()
            started = loop.time()
            try:
                async with EdgeDeviceClient(
                    f"http://127.0.0.1:{port}", timeout_s=0.4
                ) as client:
                    with pytest.raises(RequestTimeout):
                        await client.infer(CaptureRequest())
                return loop.time() - started
            finally:
                server.close()

        elapsed = asyncio.run(scenario())

        assert elapsed < 0.7
