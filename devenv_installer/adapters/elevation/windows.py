"""
Windows elevation — UAC prompt via ``Start-Process -Verb RunAs``.

The elevated script is passed with ``-EncodedCommand`` (base64 of
UTF-16LE) so paths and host lines need no shell quoting.  When the
user dismisses the UAC prompt, Start-Process throws and the outer
PowerShell exits nonzero.
"""

from __future__ import annotations

import base64
import logging
import subprocess
from pathlib import Path

from devenv_installer.adapters.base import ElevatedExecutor
from devenv_installer.core.models.result import ErrorKind, StepResult

logger = logging.getLogger(__name__)


def _ps_literal(value: str) -> str:
    """Single-quoted PowerShell string literal."""
    return "'" + value.replace("'", "''") + "'"


def _encode(script: str) -> str:
    return base64.b64encode(script.encode("utf-16-le")).decode("ascii")


def build_command(path: Path, text: str, powershell: str = "powershell") -> list[str]:
    """The outer, unprivileged command that spawns the elevated append."""
    inner = f"[System.IO.File]::AppendAllText({_ps_literal(str(path))}, {_ps_literal(text)})"
    outer = (
        "$p = Start-Process powershell -Verb RunAs -Wait -PassThru -WindowStyle Hidden "
        f"-ArgumentList '-NoProfile','-EncodedCommand','{_encode(inner)}'; "
        "exit $p.ExitCode"
    )
    return [powershell, "-NoProfile", "-NonInteractive", "-Command", outer]


class PowerShellExecutor(ElevatedExecutor):
    """Append through an elevated PowerShell (Windows)."""

    def __init__(self, powershell: str = "powershell", timeout: int = 300):
        self._powershell = powershell
        self._timeout = timeout

    @property
    def name(self) -> str:
        return "powershell"

    def append(self, path: Path, text: str) -> StepResult:
        logger.info("Requesting UAC elevation to append to %s", path)
        try:
            result = subprocess.run(
                build_command(path, text, self._powershell),
                capture_output=True,
                text=True,
                timeout=self._timeout,
            )
        except subprocess.TimeoutExpired:
            return StepResult.failure(
                ErrorKind.PRIVILEGE,
                f"Elevation timed out after {self._timeout}s",
            )
        except OSError as e:
            return StepResult.failure(ErrorKind.PRIVILEGE, f"Could not run PowerShell: {e}")

        if result.returncode != 0:
            stderr = (result.stderr or "").strip()
            logger.warning("Elevated append failed (exit %d): %s", result.returncode, stderr)
            return StepResult.failure(
                ErrorKind.PRIVILEGE,
                stderr or f"Elevation was cancelled or failed (exit {result.returncode})",
                exit_code=result.returncode,
            )
        return StepResult.success()
