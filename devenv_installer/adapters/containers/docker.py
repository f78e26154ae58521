"""
Docker adapter — compose operations through the docker CLI.

Uses the docker CLI — never the Docker API directly.  Build output is
streamed: stdout and stderr share one pipe so chunks reach the caller
in the order docker wrote them (compose sends its progress to stderr).
"""

from __future__ import annotations

import codecs
import json
import logging
import os
import subprocess
from collections.abc import Generator
from pathlib import Path
from typing import Literal

from devenv_installer.adapters.base import ContainerRuntime, OutputCallback
from devenv_installer.core.models.result import (
    Availability,
    ContainerState,
    ErrorKind,
    StepResult,
)

logger = logging.getLogger(__name__)

_READ_SIZE = 4096

StreamItem = tuple[Literal["output", "exit"], str | int]


def _popen_stream(cmd: list[str], *, cwd: Path) -> Generator[StreamItem, None, None]:
    """Run *cmd* and yield output chunks in real time.

    Yields:
        ("output", text)  — decoded chunk, exactly as read from the pipe
        ("exit", code)    — process exit code (always last)

    Raises:
        OSError: If the process cannot be started.
    """
    logger.debug("Streaming command: %s (cwd=%s)", cmd, cwd)
    proc = subprocess.Popen(
        cmd,
        cwd=str(cwd),
        stdout=subprocess.PIPE,
        stderr=subprocess.STDOUT,
        bufsize=0,
    )
    decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
    assert proc.stdout is not None
    drained = False
    try:
        fd = proc.stdout.fileno()
        while True:
            data = os.read(fd, _READ_SIZE)
            if not data:
                break
            text = decoder.decode(data)
            if text:
                yield ("output", text)
        drained = True
        tail = decoder.decode(b"", final=True)
        if tail:
            yield ("output", tail)
    finally:
        proc.stdout.close()
        if not drained:
            # Consumer stopped early: don't leave the child running or unreaped
            logger.debug("Stream abandoned, killing pid %d", proc.pid)
            proc.kill()
        proc.wait()
    yield ("exit", proc.returncode)


class DockerComposeRuntime(ContainerRuntime):
    """``docker compose`` build / up / down / ps.

    Args:
        docker_bin: docker executable (default: ``docker`` on PATH).
        start_timeout: seconds allowed for ``up -d``.
        query_timeout: seconds allowed for version/info/ps queries.
    """

    def __init__(
        self,
        docker_bin: str = "docker",
        *,
        start_timeout: int = 300,
        query_timeout: int = 15,
    ):
        self._docker = docker_bin
        self._start_timeout = start_timeout
        self._query_timeout = query_timeout

    @property
    def name(self) -> str:
        return "docker"

    # ── Preconditions ───────────────────────────────────────────

    def check_installed(self) -> Availability:
        r = self._query("--version")
        if r is None or r.returncode != 0:
            return Availability(available=False, error="Docker is not installed")
        return Availability(available=True, detail=r.stdout.strip())

    def check_running(self) -> Availability:
        r = self._query("info")
        if r is None or r.returncode != 0:
            return Availability(available=False, error="Docker daemon is not running")
        return Availability(available=True)

    # ── Operations ──────────────────────────────────────────────

    def build(self, work_dir: Path, on_output: OutputCallback | None = None) -> StepResult:
        cmd = [self._docker, "compose", "build"]
        code: int | str = -1
        stream = _popen_stream(cmd, cwd=work_dir)
        try:
            for kind, value in stream:
                if kind == "output":
                    if on_output is not None:
                        on_output(value)  # type: ignore[arg-type]
                else:
                    code = value
        except OSError as e:
            logger.warning("Could not launch docker build: %s", e)
            return StepResult.failure(ErrorKind.LAUNCH, f"Failed to launch docker: {e}")
        finally:
            stream.close()

        if code != 0:
            return StepResult.failure(
                ErrorKind.PROCESS,
                f"Docker build failed with code {code}",
                exit_code=code,
            )
        return StepResult.success()

    def start(self, work_dir: Path) -> StepResult:
        try:
            r = self._compose("up", "-d", cwd=work_dir, timeout=self._start_timeout)
        except subprocess.TimeoutExpired:
            return StepResult.failure(
                ErrorKind.PROCESS,
                f"Docker compose up timed out after {self._start_timeout}s",
            )
        except OSError as e:
            return StepResult.failure(ErrorKind.LAUNCH, f"Failed to launch docker: {e}")

        if r.returncode != 0:
            logger.debug("compose up stderr: %s", r.stderr.strip())
            return StepResult.failure(
                ErrorKind.PROCESS,
                f"Docker compose up failed with code {r.returncode}",
                exit_code=r.returncode,
                stderr=r.stderr.strip(),
            )
        return StepResult.success()

    def stop(self, work_dir: Path) -> StepResult:
        try:
            r = self._compose("down", cwd=work_dir, timeout=self._start_timeout)
        except subprocess.TimeoutExpired:
            return StepResult.failure(ErrorKind.PROCESS, "Docker compose down timed out")
        except OSError as e:
            return StepResult.failure(ErrorKind.LAUNCH, f"Failed to launch docker: {e}")

        if r.returncode != 0:
            return StepResult.failure(
                ErrorKind.PROCESS,
                r.stderr.strip() or f"Docker compose down failed with code {r.returncode}",
                exit_code=r.returncode,
            )
        return StepResult.success()

    def status(self, work_dir: Path) -> list[ContainerState]:
        try:
            r = self._compose("ps", "--format", "json", cwd=work_dir, timeout=self._query_timeout)
        except (OSError, subprocess.SubprocessError) as e:
            logger.debug("compose ps failed: %s", e)
            return []
        if r.returncode != 0:
            return []
        return parse_compose_ps(r.stdout)

    # ── Helpers ─────────────────────────────────────────────────

    def _compose(self, *args: str, cwd: Path, timeout: int) -> subprocess.CompletedProcess[str]:
        logger.debug("Running: docker compose %s (cwd=%s)", " ".join(args), cwd)
        return subprocess.run(
            [self._docker, "compose", *args],
            cwd=str(cwd),
            capture_output=True,
            text=True,
            timeout=timeout,
        )

    def _query(self, *args: str) -> subprocess.CompletedProcess[str] | None:
        try:
            return subprocess.run(
                [self._docker, *args],
                capture_output=True,
                text=True,
                timeout=self._query_timeout,
            )
        except (OSError, subprocess.SubprocessError) as e:
            logger.debug("docker %s query failed: %s", args[0], e)
            return None


def parse_compose_ps(output: str) -> list[ContainerState]:
    """Parse ``docker compose ps --format json``.

    Older compose versions print one JSON array, newer ones print one
    object per line.
    """
    output = output.strip()
    if not output:
        return []

    try:
        parsed = json.loads(output)
        raw_list = parsed if isinstance(parsed, list) else [parsed]
    except json.JSONDecodeError:
        raw_list = []
        for line in output.splitlines():
            try:
                raw_list.append(json.loads(line))
            except json.JSONDecodeError:
                continue

    states = []
    for svc in raw_list:
        if not isinstance(svc, dict):
            continue
        ports = svc.get("Ports", "")
        states.append(ContainerState(
            name=svc.get("Name", ""),
            service=svc.get("Service", ""),
            state=svc.get("State", ""),
            status=svc.get("Status", ""),
            image=svc.get("Image", ""),
            ports=ports if isinstance(ports, str) else json.dumps(ports),
        ))
    return states
