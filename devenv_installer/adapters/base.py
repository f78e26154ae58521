"""
Adapter base — the protocol contract between services and external tools.

Two capabilities live behind abstract interfaces so that the
orchestrator and the hosts mutator never talk to a CLI directly:

    ContainerRuntime   build / start / stop / status of the containers
    ElevatedExecutor   "append this text to that file as administrator"

Implementations NEVER raise for expected failures — they return a
``StepResult`` (or ``Availability``) describing what went wrong.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from pathlib import Path

from devenv_installer.core.models.result import Availability, ContainerState, StepResult

OutputCallback = Callable[[str], None]


class ContainerRuntime(ABC):
    """Abstract container runtime.

    To add a runtime (e.g. a native API client instead of the CLI):
        1. Subclass ContainerRuntime
        2. Implement the six operations below
        3. Return it from ``adapters.get_runtime``
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Runtime identifier (e.g. 'docker', 'mock')."""

    @abstractmethod
    def check_installed(self) -> Availability:
        """Is the runtime's tooling present?  Read-only, never raises."""

    @abstractmethod
    def check_running(self) -> Availability:
        """Is the runtime's daemon reachable?  Read-only, never raises."""

    @abstractmethod
    def build(self, work_dir: Path, on_output: OutputCallback | None = None) -> StepResult:
        """Build images, forwarding every output chunk to *on_output* as it arrives."""

    @abstractmethod
    def start(self, work_dir: Path) -> StepResult:
        """Start containers detached."""

    @abstractmethod
    def stop(self, work_dir: Path) -> StepResult:
        """Stop containers.  Best effort."""

    @abstractmethod
    def status(self, work_dir: Path) -> list[ContainerState]:
        """Current container states, or ``[]`` on any error."""

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r}>"


class ElevatedExecutor(ABC):
    """Run a single file append with administrative privileges.

    Callers never branch on the operating system: one executor is
    selected at startup (see ``adapters.elevation.select_executor``).
    Implementations must not accept or embed passwords; the platform's
    own prompt (sudo, UAC) collects credentials.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Executor identifier (e.g. 'sudo', 'powershell', 'direct')."""

    @property
    def elevates(self) -> bool:
        """Whether this executor requests elevation at all."""
        return True

    @abstractmethod
    def append(self, path: Path, text: str) -> StepResult:
        """Append *text* to *path*.  A cancelled prompt is a failure, not an exception."""

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r}>"
