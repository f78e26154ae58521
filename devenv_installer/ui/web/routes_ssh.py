"""
SSH routes — key discovery, copy and generation.

Blueprint: ssh_bp
Prefix: /api

Keys always land in ``<workDir>/ssh``.

Endpoints:
    GET  /ssh/keys      — {exists, keys, path}
    POST /ssh/copy      — copy ~/.ssh key pairs
    POST /ssh/generate  — {email} → new ed25519 pair
"""

from __future__ import annotations

from flask import Blueprint, jsonify, request

from devenv_installer.core.models.result import ErrorKind
from devenv_installer.core.services import workspace_ops
from devenv_installer.ui.web.helpers import get_installer

ssh_bp = Blueprint("ssh", __name__)


@ssh_bp.route("/ssh/keys")
def ssh_keys():  # type: ignore[no-untyped-def]
    return jsonify(workspace_ops.check_existing_ssh_keys(get_installer().ssh_source))


@ssh_bp.route("/ssh/copy", methods=["POST"])
def ssh_copy():  # type: ignore[no-untyped-def]
    installer = get_installer()
    result = workspace_ops.copy_ssh_keys(installer.ssh_dir, installer.ssh_source)
    return jsonify({**result.to_dict(), **result.data})


@ssh_bp.route("/ssh/generate", methods=["POST"])
def ssh_generate():  # type: ignore[no-untyped-def]
    data = request.get_json(silent=True) or {}
    email = str(data.get("email", ""))
    result = workspace_ops.generate_ssh_keys(email, get_installer().ssh_dir)
    if result.kind is ErrorKind.VALIDATION:
        return jsonify(result.to_dict()), 400
    return jsonify({**result.to_dict(), **result.data})
