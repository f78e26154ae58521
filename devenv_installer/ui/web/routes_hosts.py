"""
Hosts routes — check and add ``instance-<letter>`` entries.

Blueprint: hosts_bp
Prefix: /api

Endpoints:
    GET  /hosts/check?instances=N  — {allPresent, missing, error?}
    POST /hosts/add {instances}    — {success, error?, manual?}
"""

from __future__ import annotations

from flask import Blueprint, jsonify, request

from devenv_installer.core.services.hosts_ops import count_error
from devenv_installer.ui.web.helpers import get_installer, int_arg

hosts_bp = Blueprint("hosts", __name__)

_DEFAULT_INSTANCES = 5


def _bad_count(n: int):  # type: ignore[no-untyped-def]
    return jsonify({"success": False, "error": count_error(n)}), 400


@hosts_bp.route("/hosts/check")
def hosts_check():  # type: ignore[no-untyped-def]
    n = int_arg(request.args.get("instances"), _DEFAULT_INSTANCES) or _DEFAULT_INSTANCES
    if count_error(n):
        return _bad_count(n)
    return jsonify(get_installer().hosts.check_entries(n).to_dict())


@hosts_bp.route("/hosts/add", methods=["POST"])
def hosts_add():  # type: ignore[no-untyped-def]
    data = request.get_json(silent=True) or {}
    n = int_arg(data.get("instances"), 0)
    if count_error(n):
        return _bad_count(n)

    result = get_installer().hosts.ensure_entries(n)
    out = result.to_dict()
    if result.ok and result.data.get("message"):
        out["message"] = result.data["message"]
    return jsonify(out)
