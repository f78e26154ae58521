"""
Core API routes — platform info and shutdown.

Blueprint: api_bp
Prefix: /api

Endpoints:
    GET  /platform   — OS, architecture, home and work directories
    POST /shutdown   — stop the server shortly after replying
"""

from __future__ import annotations

import logging
import os
import threading

from flask import Blueprint, jsonify

from devenv_installer.core.services.setup_ops import platform_info
from devenv_installer.ui.web.helpers import get_installer

logger = logging.getLogger(__name__)

api_bp = Blueprint("api", __name__)

_SHUTDOWN_DELAY_S = 0.5


def _schedule_shutdown() -> None:
    """Exit the process after the response has been flushed."""
    timer = threading.Timer(_SHUTDOWN_DELAY_S, os._exit, args=(0,))
    timer.daemon = True
    timer.start()


@api_bp.route("/platform")
def platform():  # type: ignore[no-untyped-def]
    """Host platform, architecture, home and work directories."""
    return jsonify(platform_info(get_installer()))


@api_bp.route("/shutdown", methods=["POST"])
def shutdown():  # type: ignore[no-untyped-def]
    """Stop the server."""
    logger.info("Shutdown requested")
    _schedule_shutdown()
    return jsonify({"success": True})
