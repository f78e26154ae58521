"""
Web server shared helpers.

Accessors for the objects ``create_app`` stores on the application,
used by every route blueprint.
"""

from __future__ import annotations

from flask import current_app

from devenv_installer.core.services.progress import BroadcastStreamSink
from devenv_installer.core.services.setup_ops import Installer


def get_installer() -> Installer:
    from devenv_installer.ui.web.server import INSTALLER_EXT

    return current_app.extensions[INSTALLER_EXT]


def get_stream() -> BroadcastStreamSink:
    from devenv_installer.ui.web.server import STREAM_EXT

    return current_app.extensions[STREAM_EXT]


def int_arg(value: object, default: int) -> int:
    """Lenient int parsing for query/body values (``"3"`` → 3, junk → default)."""
    try:
        return int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return default
