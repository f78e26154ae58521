"""
Docker routes — runtime preconditions and container state.

Blueprint: docker_bp
Prefix: /api

Thin HTTP wrappers over the installer's ``ContainerRuntime``.

Endpoints:
    GET  /docker/installed  — {installed, error?}
    GET  /docker/running    — {running, error?}
    GET  /docker/status     — {containers: [...]}
    POST /docker/stop       — {success, error?}
"""

from __future__ import annotations

from flask import Blueprint, jsonify

from devenv_installer.ui.web.helpers import get_installer

docker_bp = Blueprint("docker", __name__)


@docker_bp.route("/docker/installed")
def docker_installed():  # type: ignore[no-untyped-def]
    a = get_installer().runtime.check_installed()
    out = {"installed": a.available}
    if a.error:
        out["error"] = a.error
    if a.detail:
        out["version"] = a.detail
    return jsonify(out)


@docker_bp.route("/docker/running")
def docker_running():  # type: ignore[no-untyped-def]
    a = get_installer().runtime.check_running()
    out = {"running": a.available}
    if a.error:
        out["error"] = a.error
    return jsonify(out)


@docker_bp.route("/docker/status")
def docker_status():  # type: ignore[no-untyped-def]
    """Container states for the provisioned environment (advisory)."""
    installer = get_installer()
    states = installer.runtime.status(installer.work_dir)
    return jsonify({"containers": [s.model_dump() for s in states]})


@docker_bp.route("/docker/stop", methods=["POST"])
def docker_stop():  # type: ignore[no-untyped-def]
    installer = get_installer()
    return jsonify(installer.runtime.stop(installer.work_dir).to_dict())
