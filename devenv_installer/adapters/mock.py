"""
Mock runtime — test double for the container runtime.

Used by ``--mock`` mode to walk through the whole setup without
touching docker, and by the test-suite to script failures.
"""

from __future__ import annotations

from pathlib import Path

from devenv_installer.adapters.base import ContainerRuntime, ElevatedExecutor, OutputCallback
from devenv_installer.core.models.result import (
    Availability,
    ContainerState,
    ErrorKind,
    StepResult,
)


class MockRuntime(ContainerRuntime):
    """Container runtime that records calls and returns scripted results.

    By default every operation succeeds.  ``build_exit_code`` and
    ``start_exit_code`` make the corresponding operation fail the way
    the docker runtime would.
    """

    def __init__(
        self,
        *,
        installed: bool = True,
        running: bool = True,
        build_output: list[str] | None = None,
        build_exit_code: int = 0,
        start_exit_code: int = 0,
        containers: list[ContainerState] | None = None,
    ):
        self.installed = installed
        self.running = running
        self.build_output = ["[mock] building images\n"] if build_output is None else build_output
        self.build_exit_code = build_exit_code
        self.start_exit_code = start_exit_code
        self.containers = containers or []
        self._calls: list[tuple[str, Path | None]] = []

    @property
    def name(self) -> str:
        return "mock"

    @property
    def calls(self) -> list[tuple[str, Path | None]]:
        """Every operation invoked, in order: ``[("build", work_dir), ...]``."""
        return self._calls

    @property
    def call_count(self) -> int:
        return len(self._calls)

    def operations(self) -> list[str]:
        return [op for op, _ in self._calls]

    def check_installed(self) -> Availability:
        self._calls.append(("check_installed", None))
        if not self.installed:
            return Availability(available=False, error="Docker is not installed")
        return Availability(available=True, detail="Docker version 0.0.0-mock")

    def check_running(self) -> Availability:
        self._calls.append(("check_running", None))
        if not self.running:
            return Availability(available=False, error="Docker daemon is not running")
        return Availability(available=True)

    def build(self, work_dir: Path, on_output: OutputCallback | None = None) -> StepResult:
        self._calls.append(("build", work_dir))
        for chunk in self.build_output:
            if on_output is not None:
                on_output(chunk)
        if self.build_exit_code != 0:
            return StepResult.failure(
                ErrorKind.PROCESS,
                f"Docker build failed with code {self.build_exit_code}",
                exit_code=self.build_exit_code,
            )
        return StepResult.success()

    def start(self, work_dir: Path) -> StepResult:
        self._calls.append(("start", work_dir))
        if self.start_exit_code != 0:
            return StepResult.failure(
                ErrorKind.PROCESS,
                f"Docker compose up failed with code {self.start_exit_code}",
                exit_code=self.start_exit_code,
            )
        return StepResult.success()

    def stop(self, work_dir: Path) -> StepResult:
        self._calls.append(("stop", work_dir))
        return StepResult.success()

    def status(self, work_dir: Path) -> list[ContainerState]:
        self._calls.append(("status", work_dir))
        return list(self.containers)

    def reset(self) -> None:
        """Clear the call log."""
        self._calls.clear()


class MockExecutor(ElevatedExecutor):
    """Elevated executor that appends without privileges and counts calls.

    ``deny=True`` simulates a refused or cancelled elevation prompt.
    """

    def __init__(self, *, deny: bool = False):
        self.deny = deny
        self.appends: list[tuple[Path, str]] = []

    @property
    def name(self) -> str:
        return "mock"

    def append(self, path: Path, text: str) -> StepResult:
        self.appends.append((path, text))
        if self.deny:
            return StepResult.failure(ErrorKind.PRIVILEGE, "Elevation was cancelled")
        with open(path, "a", encoding="utf-8") as f:
            f.write(text)
        return StepResult.success()
