"""
POSIX elevation — ``sudo tee -a`` and plain appends.

The text travels on stdin; it never appears in the command line.
sudo collects the password itself (terminal prompt); we never pass
``-S`` and never see credentials.  Without a terminal sudo fails
fast, and the caller falls back to manual instructions.
"""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path

from devenv_installer.adapters.base import ElevatedExecutor
from devenv_installer.core.models.result import ErrorKind, StepResult

logger = logging.getLogger(__name__)


class SudoExecutor(ElevatedExecutor):
    """Append through ``sudo tee -a <path>`` (Linux, macOS)."""

    def __init__(self, sudo_bin: str = "sudo", timeout: int = 120):
        self._sudo = sudo_bin
        self._timeout = timeout

    @property
    def name(self) -> str:
        return "sudo"

    def append(self, path: Path, text: str) -> StepResult:
        cmd = [self._sudo, "tee", "-a", str(path)]
        logger.info("Requesting elevation to append to %s", path)
        try:
            result = subprocess.run(
                cmd,
                input=text,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.PIPE,
                text=True,
                timeout=self._timeout,
            )
        except subprocess.TimeoutExpired:
            return StepResult.failure(
                ErrorKind.PRIVILEGE,
                f"Elevation timed out after {self._timeout}s",
            )
        except OSError as e:
            return StepResult.failure(ErrorKind.PRIVILEGE, f"Could not run sudo: {e}")

        if result.returncode != 0:
            stderr = (result.stderr or "").strip()
            logger.warning("sudo tee failed (exit %d): %s", result.returncode, stderr)
            return StepResult.failure(
                ErrorKind.PRIVILEGE,
                stderr or f"sudo exited with code {result.returncode}",
                exit_code=result.returncode,
            )
        return StepResult.success()


class DirectWriteExecutor(ElevatedExecutor):
    """Append without elevation.

    Used when the process already runs as root, and when
    ``DEVENV_HOSTS_ELEVATION=none`` declares the hosts file writable
    by the current user.
    """

    @property
    def name(self) -> str:
        return "direct"

    @property
    def elevates(self) -> bool:
        return False

    def append(self, path: Path, text: str) -> StepResult:
        try:
            with open(path, "a", encoding="utf-8") as f:
                f.write(text)
        except PermissionError as e:
            return StepResult.failure(ErrorKind.PRIVILEGE, f"Permission denied: {e}")
        except OSError as e:
            return StepResult.failure(ErrorKind.IO, f"Could not write {path}: {e}")
        return StepResult.success()
