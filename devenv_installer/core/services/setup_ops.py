"""
Setup operations — channel-independent entry points for both transports.

The HTTP server and the local control channel call the same
functions here; they only differ in the ``ProgressSink`` they pass.

    installer = build_installer(work_dir=Path("/srv/devenv"))
    result, session = run_setup(installer, request_json, sink)
"""

from __future__ import annotations

import logging
import platform
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from devenv_installer.adapters import get_runtime
from devenv_installer.adapters.base import ContainerRuntime
from devenv_installer.core.config.loader import default_work_dir, format_validation_error
from devenv_installer.core.models.config import ProvisioningConfig
from devenv_installer.core.models.result import ErrorKind, StepResult
from devenv_installer.core.services.hosts_ops import HostsMutator, default_mutator
from devenv_installer.core.services.orchestrator import ProvisioningOrchestrator
from devenv_installer.core.services.progress import ProgressSink
from devenv_installer.core.services.session import ConflictError, Session, SessionRegistry

logger = logging.getLogger(__name__)


@dataclass
class Installer:
    """Everything a transport needs, wired once at startup."""

    runtime: ContainerRuntime
    hosts: HostsMutator
    work_dir: Path
    sessions: SessionRegistry = field(default_factory=SessionRegistry)
    ssh_source: Path | None = None

    @property
    def orchestrator(self) -> ProvisioningOrchestrator:
        return ProvisioningOrchestrator(self.runtime, self.hosts, ssh_source=self.ssh_source)

    @property
    def ssh_dir(self) -> Path:
        return self.work_dir / "ssh"


def build_installer(
    *,
    work_dir: Path | None = None,
    mock_mode: bool = False,
    runtime: ContainerRuntime | None = None,
    hosts: HostsMutator | None = None,
) -> Installer:
    """Wire runtime, hosts mutator and session registry.

    In mock mode the hosts file is a scratch file inside the work
    directory so a demo run never prompts for elevation.
    """
    work_dir = (work_dir or default_work_dir()).resolve()
    if hosts is None:
        if mock_mode:
            from devenv_installer.adapters.mock import MockExecutor

            work_dir.mkdir(parents=True, exist_ok=True)
            scratch = work_dir / ".devenv-hosts"
            scratch.touch(exist_ok=True)
            hosts = HostsMutator(scratch, MockExecutor())
        else:
            hosts = default_mutator()

    installer = Installer(
        runtime=runtime or get_runtime(mock_mode),
        hosts=hosts,
        work_dir=work_dir,
    )
    logger.debug(
        "Installer wired: runtime=%s hosts=%s executor=%s",
        installer.runtime.name, hosts.hosts_file, hosts.executor.name,
    )
    return installer


def platform_info(installer: Installer) -> dict[str, Any]:
    return {
        "platform": sys.platform,
        "system": platform.system(),
        "arch": platform.machine(),
        "homeDir": str(Path.home()),
        "workDir": str(installer.work_dir),
    }


def parse_setup_request(installer: Installer, data: dict[str, Any]) -> ProvisioningConfig:
    """Validate a run request, defaulting ``workDir`` to the installer's.

    Raises:
        pydantic.ValidationError: If the payload is malformed.
    """
    data = dict(data)
    if not data.get("workDir") and not data.get("work_dir"):
        data["workDir"] = str(installer.work_dir)
    return ProvisioningConfig.model_validate(data)


def run_setup(
    installer: Installer,
    data: dict[str, Any] | ProvisioningConfig,
    sink: ProgressSink,
) -> tuple[StepResult, Session | None]:
    """Validate, open a session, run the pipeline, close the session.

    Never raises for expected failures: malformed input becomes a
    ``ValidationFailure`` result, a concurrent run a ``ConflictFailure``.
    """
    if isinstance(data, ProvisioningConfig):
        config = data
    else:
        try:
            config = parse_setup_request(installer, data)
        except ValidationError as e:
            return StepResult.failure(ErrorKind.VALIDATION, format_validation_error(e)), None

    try:
        session = installer.sessions.start(sink)
    except ConflictError as e:
        logger.warning("Rejected setup request: %s", e)
        return StepResult.failure(ErrorKind.CONFLICT, str(e), active_run_id=e.active_run_id), None

    result: StepResult | None = None
    try:
        result = installer.orchestrator.execute(config, sink)
    finally:
        # A sink that raises still releases the session
        installer.sessions.finish(
            session.run_id,
            result or StepResult.failure(ErrorKind.UNEXPECTED, "Setup aborted"),
        )
    return result, session
