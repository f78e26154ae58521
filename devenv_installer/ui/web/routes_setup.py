"""
Setup routes — run the provisioning pipeline and stream its progress.

Blueprint: setup_bp
Prefix: /api

The browser first opens ``GET /setup/stream`` (EventSource), then
posts the config to ``POST /setup/run``, which blocks until the
pipeline ends.  Events flow through the app's BroadcastStreamSink.

Wire format (one JSON object per SSE ``data:`` line)::

    data: {"step": "build", "message": "Building ...", "percent": 60}
    data: {"type": "docker", "output": "#5 [2/7] RUN apt-get ..."}

Endpoints:
    GET  /setup/stream             — SSE stream of the current run
    POST /setup/run {config}       — {success, error?, manual?, run_id?}
    GET  /setup/session/<run_id>   — outcome of a run
"""

from __future__ import annotations

import json

from flask import Blueprint, Response, jsonify, request

from devenv_installer.core.models.result import ErrorKind
from devenv_installer.core.services.setup_ops import run_setup
from devenv_installer.ui.web.helpers import get_installer, get_stream

setup_bp = Blueprint("setup", __name__)

_STATUS_BY_KIND = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.CONFLICT: 409,
}


@setup_bp.route("/setup/stream")
def setup_stream():  # type: ignore[no-untyped-def]
    """SSE endpoint — streams progress and build output to the browser."""
    events = get_stream().subscribe()

    def generate():  # type: ignore[no-untyped-def]
        yield ": connected\n\n"
        for event in events:
            if event is None:
                yield ": keep-alive\n\n"
                continue
            yield f"data: {json.dumps(event)}\n\n"

    return Response(
        generate(),
        mimetype="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "X-Accel-Buffering": "no",
            "Connection": "keep-alive",
        },
    )


@setup_bp.route("/setup/run", methods=["POST"])
def setup_run():  # type: ignore[no-untyped-def]
    """Run the full pipeline.  Body is ``{"config": {...}}`` or the bare config."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({"success": False, "error": "Expected a JSON object"}), 400
    config = data.get("config", data)
    if not isinstance(config, dict):
        return jsonify({"success": False, "error": "'config' must be an object"}), 400

    result, session = run_setup(get_installer(), config, get_stream())

    out = result.to_dict()
    if session is not None:
        out["run_id"] = session.run_id
    if result.ok and "urls" in result.data:
        out["urls"] = result.data["urls"]
    if result.kind is ErrorKind.CONFLICT:
        out["active_run_id"] = result.data.get("active_run_id")

    status = _STATUS_BY_KIND.get(result.kind, 200) if result.kind else 200
    return jsonify(out), status


@setup_bp.route("/setup/session/<run_id>")
def setup_session(run_id: str):  # type: ignore[no-untyped-def]
    session = get_installer().sessions.get(run_id)
    if session is None:
        return jsonify({"error": f"Unknown run: {run_id}"}), 404
    return jsonify(session.to_dict())
