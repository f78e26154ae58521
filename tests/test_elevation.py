"""
Tests for elevated executors — selection, sudo, PowerShell, direct write.
"""

import base64
import subprocess
from pathlib import Path
from unittest.mock import MagicMock, patch

from devenv_installer.adapters.elevation import (
    DirectWriteExecutor,
    PowerShellExecutor,
    SudoExecutor,
    select_executor,
)
from devenv_installer.adapters.elevation.windows import build_command
from devenv_installer.core.models.result import ErrorKind


def _completed(returncode=0, stdout="", stderr=""):
    return MagicMock(returncode=returncode, stdout=stdout, stderr=stderr)


class TestSelectExecutor:
    def test_linux_user(self):
        assert isinstance(select_executor("linux", is_root=False), SudoExecutor)

    def test_macos_user(self):
        assert isinstance(select_executor("darwin", is_root=False), SudoExecutor)

    def test_root_writes_directly(self):
        executor = select_executor("linux", is_root=True)
        assert isinstance(executor, DirectWriteExecutor)
        assert not executor.elevates

    def test_windows(self):
        assert isinstance(select_executor("win32"), PowerShellExecutor)

    def test_mode_none(self):
        assert isinstance(select_executor("win32", mode="none"), DirectWriteExecutor)
        assert isinstance(select_executor("linux", mode="none", is_root=False), DirectWriteExecutor)


class TestSudoExecutor:
    def test_text_goes_through_stdin(self):
        with patch("devenv_installer.adapters.elevation.posix.subprocess.run",
                   return_value=_completed()) as run:
            result = SudoExecutor().append(Path("/etc/hosts"), "127.0.0.1 instance-a\n")

        assert result.ok
        args, kwargs = run.call_args
        assert args[0] == ["sudo", "tee", "-a", "/etc/hosts"]
        assert kwargs["input"] == "127.0.0.1 instance-a\n"
        assert "-S" not in args[0]

    def test_nonzero_exit_is_privilege_failure(self):
        with patch("devenv_installer.adapters.elevation.posix.subprocess.run",
                   return_value=_completed(1, stderr="sudo: a password is required")):
            result = SudoExecutor().append(Path("/etc/hosts"), "x\n")

        assert result.failed
        assert result.kind is ErrorKind.PRIVILEGE
        assert "password is required" in result.error

    def test_sudo_missing(self):
        with patch("devenv_installer.adapters.elevation.posix.subprocess.run",
                   side_effect=FileNotFoundError("sudo")):
            result = SudoExecutor().append(Path("/etc/hosts"), "x\n")
        assert result.kind is ErrorKind.PRIVILEGE

    def test_timeout(self):
        with patch("devenv_installer.adapters.elevation.posix.subprocess.run",
                   side_effect=subprocess.TimeoutExpired("sudo", 120)):
            result = SudoExecutor().append(Path("/etc/hosts"), "x\n")
        assert result.kind is ErrorKind.PRIVILEGE
        assert "timed out" in result.error


class TestPowerShellExecutor:
    def test_command_shape(self):
        cmd = build_command(Path(r"C:\Windows\System32\drivers\etc\hosts"), "127.0.0.1 instance-a\n")
        assert cmd[:4] == ["powershell", "-NoProfile", "-NonInteractive", "-Command"]
        assert "-Verb RunAs" in cmd[4]
        assert "127.0.0.1" not in cmd[4]

    def test_encoded_script_quotes_literals(self):
        cmd = build_command(Path("C:/it's/hosts"), "127.0.0.1 instance-a\n")
        encoded = cmd[4].split("'-EncodedCommand','")[1].split("'")[0]
        script = base64.b64decode(encoded).decode("utf-16-le")
        assert "AppendAllText('C:/it''s/hosts'" in script
        assert "127.0.0.1 instance-a" in script

    def test_cancelled_prompt(self):
        with patch("devenv_installer.adapters.elevation.windows.subprocess.run",
                   return_value=_completed(1, stderr="The operation was canceled by the user.")):
            result = PowerShellExecutor().append(Path("hosts"), "x\n")
        assert result.kind is ErrorKind.PRIVILEGE
        assert "canceled" in result.error

    def test_success(self):
        with patch("devenv_installer.adapters.elevation.windows.subprocess.run",
                   return_value=_completed()):
            assert PowerShellExecutor().append(Path("hosts"), "x\n").ok


class TestDirectWriteExecutor:
    def test_appends(self, tmp_path: Path):
        path = tmp_path / "hosts"
        path.write_text("a\n")
        assert DirectWriteExecutor().append(path, "b\n").ok
        assert path.read_text() == "a\nb\n"

    def test_permission_denied(self, tmp_path: Path):
        with patch("builtins.open", side_effect=PermissionError("denied")):
            result = DirectWriteExecutor().append(tmp_path / "hosts", "x\n")
        assert result.kind is ErrorKind.PRIVILEGE

    def test_missing_parent(self, tmp_path: Path):
        result = DirectWriteExecutor().append(tmp_path / "no" / "hosts", "x\n")
        assert result.kind is ErrorKind.IO
