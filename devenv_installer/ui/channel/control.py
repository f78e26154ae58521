"""
Control channel — request/response + push events for an embedded UI.

An embedded front-end (desktop shell, terminal UI) talks to the
installer in-process: it ``invoke``s named operations and listens on
push channels for progress::

    channel = ControlChannel(installer)
    channel.on("setup-progress", lambda ev: print(ev["percent"], ev["message"]))
    channel.on("docker-output", lambda chunk: print(chunk, end=""))
    result = channel.invoke("run-setup", {"instances": 2, "sshOption": "skip"})

Handlers carry no business logic: they delegate to ``core.services``,
exactly like the HTTP routes do.
"""

from __future__ import annotations

import logging
import webbrowser
from collections import defaultdict
from collections.abc import Callable
from pathlib import Path
from typing import Any

from devenv_installer.core.models.config import ProvisioningConfig
from devenv_installer.core.services import workspace_ops
from devenv_installer.core.services.progress import PushChannelSink
from devenv_installer.core.services.setup_ops import Installer, platform_info, run_setup

logger = logging.getLogger(__name__)

Listener = Callable[[Any], None]
DirectoryPicker = Callable[[], "str | Path | None"]


class ControlChannel:
    """In-process transport over an ``Installer``.

    Args:
        installer: Wired installer.
        pick_directory: Called by ``select-directory``; returns a path
            or None when the user cancels.  Without one the operation
            always returns None.
        open_url: Called by ``open-external`` (default: ``webbrowser.open``).
    """

    def __init__(
        self,
        installer: Installer,
        *,
        pick_directory: DirectoryPicker | None = None,
        open_url: Callable[[str], Any] | None = None,
    ):
        self.installer = installer
        self._pick_directory = pick_directory
        self._open_url = open_url or webbrowser.open
        self._listeners: dict[str, list[Listener]] = defaultdict(list)
        self._handlers: dict[str, Callable[..., Any]] = {
            "get-platform": self._get_platform,
            "check-docker-installed": self._check_docker_installed,
            "check-docker-running": self._check_docker_running,
            "check-ssh-keys": self._check_ssh_keys,
            "copy-ssh-keys": self._copy_ssh_keys,
            "generate-ssh-keys": self._generate_ssh_keys,
            "check-hosts-entries": self._check_hosts_entries,
            "run-setup": self._run_setup,
            "open-external": self._open_external,
            "select-directory": self._select_directory,
        }

    # ── Request / response ──────────────────────────────────────

    @property
    def operations(self) -> list[str]:
        return sorted(self._handlers)

    def invoke(self, name: str, *args: Any) -> Any:
        """Call operation *name*.

        Raises:
            KeyError: If no such operation exists.
        """
        try:
            handler = self._handlers[name]
        except KeyError:
            raise KeyError(f"Unknown operation: {name}") from None
        logger.debug("invoke %s", name)
        return handler(*args)

    # ── Push events ─────────────────────────────────────────────

    def on(self, channel: str, listener: Listener) -> None:
        """Register *listener* for push events on *channel*."""
        self._listeners[channel].append(listener)

    def off(self, channel: str, listener: Listener) -> None:
        if listener in self._listeners.get(channel, []):
            self._listeners[channel].remove(listener)

    def send(self, channel: str, payload: Any) -> None:
        """Push *payload* to every listener on *channel*."""
        for listener in list(self._listeners.get(channel, [])):
            listener(payload)

    # ── Handlers ────────────────────────────────────────────────

    def _get_platform(self) -> dict:
        return platform_info(self.installer)

    def _check_docker_installed(self) -> dict:
        a = self.installer.runtime.check_installed()
        return {"installed": a.available, **({"error": a.error} if a.error else {})}

    def _check_docker_running(self) -> dict:
        a = self.installer.runtime.check_running()
        return {"running": a.available, **({"error": a.error} if a.error else {})}

    def _check_ssh_keys(self) -> dict:
        return workspace_ops.check_existing_ssh_keys(self.installer.ssh_source)

    def _copy_ssh_keys(self, target_dir: str | Path | None = None) -> dict:
        target = Path(target_dir) if target_dir else self.installer.ssh_dir
        result = workspace_ops.copy_ssh_keys(target, self.installer.ssh_source)
        return {**result.to_dict(), **result.data}

    def _generate_ssh_keys(self, request: dict) -> dict:
        target = request.get("targetDir") or self.installer.ssh_dir
        result = workspace_ops.generate_ssh_keys(str(request.get("email", "")), Path(target))
        return {**result.to_dict(), **result.data}

    def _check_hosts_entries(self, instances: Any) -> dict:
        try:
            instances = int(instances)
        except (TypeError, ValueError):
            pass  # reported by check_entries
        return self.installer.hosts.check_entries(instances).to_dict()

    def _run_setup(self, config: dict | ProvisioningConfig) -> dict:
        result, session = run_setup(self.installer, config, PushChannelSink(self.send))
        out = result.to_dict()
        if session is not None:
            out["run_id"] = session.run_id
        if result.ok and "urls" in result.data:
            out["urls"] = result.data["urls"]
        return out

    def _open_external(self, url: str) -> None:
        if not url.startswith(("http://", "https://")):
            logger.warning("Refusing to open non-http URL: %s", url)
            return
        self._open_url(url)

    def _select_directory(self) -> str | None:
        if self._pick_directory is None:
            return None
        chosen = self._pick_directory()
        return str(chosen) if chosen else None
