"""End-to-end console runs against a mocked device."""

import base64
import json

import cv2
import httpx
import numpy as np
import pytest

from edge_console.monitor import run_console


def _png_bytes(width=320, height=240):
    ok, buffer = cv2.imencode(".png", np.full((height, width, 3), 90, dtype=np.uint8))
    assert ok
    return buffer.tobytes()


class FakeDevice:
    """Answer the device API from memory."""

    def __init__(self, *, model_loaded=True):
        self.model_loaded = model_loaded
        self.requests = []
        self.image = base64.b64encode(_png_bytes()).decode("ascii")

    def __call__(self, request):
        self.requests.append((request.method, request.url.path))
        path = request.url.path
        if path == "/health":
            return httpx.Response(
                200,
                json={
                    "status": "ok",
                    "camera": {"available": True, "width": 320, "height": 240},
                    "model": {"loaded": self.model_loaded, "path": "model.onnx"},
                },
            )
        if path == "/model/load":
            self.model_loaded = True
            return httpx.Response(200, json={"success": True, "message": "loaded"})
        if path == "/alarm" and request.method == "GET":
            return httpx.Response(200, json={"enabled": True, "active": False})
        if path == "/alarm":
            body = json.loads(request.content)
            return httpx.Response(
                200,
                json={
                    "active": body["action"] != "deactivate",
                    "pulse_duration": body.get("duration_seconds", 0),
                },
            )
        if path == "/infer":
            return httpx.Response(
                200,
                json={
                    "detections": [
                        {
                            "label": "person",
                            "confidence": 0.82,
                            "x_min": 10,
                            "y_min": 20,
                            "x_max": 110,
                            "y_max": 220,
                        }
                    ],
                    "metadata": {"inference_ms": 14.0, "model_path": "model.onnx"},
                    "encoded_image": self.image,
                },
            )
        return httpx.Response(404, text="not found")

    def count(self, method, path):
        return self.requests.count((method, path))


@pytest.fixture
def base_args(tmp_path, monkeypatch):
    monkeypatch.delenv("EDGE_CONSOLE_LOG_LEVEL", raising=False)
    return ["--base-url", "http://device:8000", "--log-dir", str(tmp_path / "logs")]


class TestConsoleRun:
    """Integration tests for run_console."""

    def test_single_image_with_export(self, tmp_path, base_args):
        """A local image is sent once and its detections are exported."""
        image_path = tmp_path / "sample.png"
        image_path.write_bytes(_png_bytes())
        device = FakeDevice()

        code = run_console(
            [*base_args, "--image", str(image_path), "--export-csv", str(tmp_path)],
            transport=httpx.MockTransport(device),
        )

        assert code == 0
        assert device.count("POST", "/infer") == 1
        exports = list(tmp_path.glob("detections-*.csv"))
        assert len(exports) == 1
        lines = exports[0].read_text(encoding="utf-8").splitlines()
        assert lines[1].split(",")[1:] == ["person", "0.820", "1", "14.0"]

    def test_streaming_requires_loaded_model(self, base_args):
        """Streaming refuses to start until the model is loaded."""
        device = FakeDevice(model_loaded=False)

        code = run_console(
            [*base_args, "--duration", "0.1"], transport=httpx.MockTransport(device)
        )

        assert code == 1
        assert device.count("POST", "/infer") == 0

    def test_streaming_after_model_load(self, base_args):
        """Loading the model lets the stream run for the given duration."""
        device = FakeDevice(model_loaded=False)

        code = run_console(
            [*base_args, "--load-model", "--fps", "20", "--duration", "0.3"],
            transport=httpx.MockTransport(device),
        )

        assert code == 0
        assert device.count("POST", "/model/load") == 1
        assert device.count("POST", "/infer") >= 1
        assert device.count("GET", "/alarm") >= 1

    def test_alarm_trigger(self, base_args):
        """A single alarm action is sent and the console exits."""
        device = FakeDevice()

        code = run_console(
            [*base_args, "--alarm", "trigger", "--pulse-duration", "2"],
            transport=httpx.MockTransport(device),
        )

        assert code == 0
        assert device.requests == [("POST", "/alarm")]

    def test_invalid_configuration(self, base_args):
        """Bad flags end the run before any request is made."""
        device = FakeDevice()

        code = run_console(
            [*base_args, "--lat", "12"], transport=httpx.MockTransport(device)
        )

        assert code == 2
        assert device.requests == []
