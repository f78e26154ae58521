"""
Web server — Flask app factory for the browser front-end.

Creates the Flask application exposing the installer's REST API and
the setup progress stream.  The single-page front-end itself is
served from ``static_dir`` when one is given.
"""

from __future__ import annotations

import logging
from pathlib import Path

from flask import Flask, send_from_directory

from devenv_installer.core.services.progress import BroadcastStreamSink
from devenv_installer.core.services.setup_ops import Installer, build_installer

logger = logging.getLogger(__name__)

INSTALLER_EXT = "devenv_installer"
STREAM_EXT = "devenv_stream"


def create_app(
    work_dir: Path | None = None,
    mock_mode: bool = False,
    *,
    installer: Installer | None = None,
    static_dir: Path | None = None,
) -> Flask:
    """Create and configure the Flask application.

    Args:
        work_dir: Directory the environment is provisioned into.
        mock_mode: Use the mock runtime and a scratch hosts file.
        installer: Pre-wired installer (tests); built from the other
            arguments when omitted.
        static_dir: Directory holding the front-end's ``index.html``.

    Returns:
        Configured Flask application.
    """
    app = Flask(
        __name__,
        static_folder=str(static_dir) if static_dir else None,
        static_url_path="",
    )

    if installer is None:
        installer = build_installer(work_dir=work_dir, mock_mode=mock_mode)

    app.config["WORK_DIR"] = str(installer.work_dir)
    app.config["MOCK_MODE"] = mock_mode
    app.extensions[INSTALLER_EXT] = installer
    app.extensions[STREAM_EXT] = BroadcastStreamSink()

    from devenv_installer.ui.web.routes_api import api_bp
    from devenv_installer.ui.web.routes_docker import docker_bp
    from devenv_installer.ui.web.routes_hosts import hosts_bp
    from devenv_installer.ui.web.routes_setup import setup_bp
    from devenv_installer.ui.web.routes_ssh import ssh_bp

    app.register_blueprint(api_bp, url_prefix="/api")
    app.register_blueprint(docker_bp, url_prefix="/api")
    app.register_blueprint(ssh_bp, url_prefix="/api")
    app.register_blueprint(hosts_bp, url_prefix="/api")
    app.register_blueprint(setup_bp, url_prefix="/api")

    if static_dir is not None:
        @app.route("/")
        def index():  # type: ignore[no-untyped-def]
            return send_from_directory(str(static_dir), "index.html")

    logger.info("Web app created (work_dir=%s, mock=%s)", installer.work_dir, mock_mode)
    return app


def run_server(
    app: Flask,
    host: str = "127.0.0.1",
    port: int = 3000,
    debug: bool = False,
) -> None:
    """Run the Flask development server (threaded: the stream and the run overlap)."""
    logger.info("Starting web server on %s:%d", host, port)
    app.run(host=host, port=port, debug=debug, use_reloader=False, threaded=True)
