"""Flask app previewing the console's annotated frames and telemetry."""

from __future__ import annotations

import threading

from flask import Flask, Response, jsonify, redirect, render_template, request, stream_with_context
from loguru import logger

from edge_console.pipeline.detections import (
    ALL_LABELS,
    event_matches,
    export_filename,
    to_csv,
)
from edge_console.streaming.generator import gen_frames
from edge_console.streaming.state import PreviewState, to_jsonable


def create_app(state: PreviewState) -> Flask:
    """Create the preview app reading from ``state``."""
    app = Flask(__name__)
    app.config["SEND_FILE_MAX_AGE_DEFAULT"] = 0

    def _filtered_events() -> list:
        label = request.args.get("label", ALL_LABELS)
        min_confidence = request.args.get("min_confidence", 0, type=float)
        return [
            event
            for event in state.events()
            if event_matches(event, label, min_confidence)
        ]

    @app.route("/video_feed")
    def video_feed() -> Response:
        """Return multipart MJPEG stream of annotated frames."""
        if state.stream_url:
            # display-only mode: the device streams directly
            return redirect(state.stream_url)
        response = Response(
            stream_with_context(gen_frames(state)),
            mimetype="multipart/x-mixed-replace; boundary=frame",
        )
        response.headers["Cache-Control"] = "no-cache, no-store, must-revalidate"
        response.headers["Pragma"] = "no-cache"
        response.headers["Expires"] = "0"
        return response

    @app.route("/stats")
    def stats() -> Response:
        return jsonify(state.summary())

    @app.route("/health")
    def health() -> Response:
        return jsonify(state.summary()["health"])

    @app.route("/logs")
    def logs() -> Response:
        return jsonify(state.recent_logs())

    @app.route("/detections")
    def detections() -> Response:
        return jsonify(to_jsonable(_filtered_events()))

    @app.route("/detections.csv")
    def detections_csv() -> Response:
        response = Response(to_csv(_filtered_events()), mimetype="text/csv")
        response.headers["Content-Disposition"] = (
            f"attachment; filename={export_filename()}"
        )
        return response

    @app.route("/")
    def index() -> str:
        """Render the preview index page."""
        return render_template("index.html", display_only=bool(state.stream_url))

    app.extensions["preview_state"] = state
    return app


def start_preview_server(
    state: PreviewState, host: str = "127.0.0.1", port: int = 5000
) -> threading.Thread:
    """Serve the preview app from a daemon thread."""
    app = create_app(state)

    def _serve() -> None:
        try:
            app.run(host=host, port=port, debug=False, threaded=True, use_reloader=False)
        except OSError as exc:
            logger.error("Preview server failed on {}:{}: {}", host, port, exc)

    thread = threading.Thread(target=_serve, name="preview-server", daemon=True)
    thread.start()
    logger.info("Preview available at http://{}:{}/", host, port)
    return thread
