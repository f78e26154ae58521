"""
Hosts file operations — idempotent, elevated appends.

Each instance is reachable as ``instance-<letter>`` through a
``127.0.0.1 instance-<letter>`` line in the system hosts file.

    check_entries()   read-only: which expected lines are missing?
    ensure_entries()  append only the missing lines, elevated

Flow of ``ensure_entries``::

    read file ─► compute missing ─► none missing ─► success (no prompt)
                                 └► some missing ─► elevated append ─► success
                                                                    └► failure + manual text

Existing lines are never rewritten; new lines go at end of file.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path

from pydantic import BaseModel, Field

from devenv_installer.adapters.base import ElevatedExecutor
from devenv_installer.core.models.config import LOOPBACK, MAX_INSTANCES, instance_name
from devenv_installer.core.models.result import ErrorKind, StepResult

logger = logging.getLogger(__name__)


class HostsCheck(BaseModel):
    """Result of a read-only hosts check."""

    all_present: bool
    missing: list[str] = Field(default_factory=list)
    error: str = ""

    def to_dict(self) -> dict:
        out: dict = {"allPresent": self.all_present, "missing": self.missing}
        if self.error:
            out["error"] = self.error
        return out


def expected_hostnames(instances: int) -> list[str]:
    """Hostnames for instances 1..N, in order."""
    return [instance_name(i) for i in range(1, instances + 1)]


def count_error(instances: object) -> str:
    """Why *instances* is not a usable instance count, or "" when it is."""
    if isinstance(instances, bool) or not isinstance(instances, int):
        return f"instances must be an integer, got {instances!r}"
    if not 1 <= instances <= MAX_INSTANCES:
        return f"instances must be between 1 and {MAX_INSTANCES}"
    return ""


def hosts_line(hostname: str) -> str:
    return f"{LOOPBACK} {hostname}"


def _entry_pattern(hostname: str) -> re.Pattern[str]:
    # Whole line only: "127.0.0.1 instance-a2" or "# 127.0.0.1 instance-a" don't count.
    return re.compile(
        rf"^{re.escape(LOOPBACK)}[ \t]+{re.escape(hostname)}[ \t]*\r?$",
        re.MULTILINE,
    )


def find_missing(content: str, hostnames: list[str]) -> list[str]:
    """Hostnames from *hostnames* that have no entry in *content*."""
    return [h for h in hostnames if not _entry_pattern(h).search(content)]


def manual_instructions(path: Path, hostnames: list[str]) -> str:
    """Copy-pasteable fallback listing exactly the missing lines."""
    lines = "\n".join(hosts_line(h) for h in hostnames)
    return f"Please add the following to {path}:\n{lines}"


class HostsMutator:
    """Reads and extends one hosts file through an ``ElevatedExecutor``."""

    def __init__(self, hosts_file: Path, executor: ElevatedExecutor):
        self.hosts_file = Path(hosts_file)
        self.executor = executor

    def check_entries(self, instances: int) -> HostsCheck:
        """Which expected entries are missing?  Never writes."""
        bad = count_error(instances)
        if bad:
            return HostsCheck(all_present=False, error=bad)

        try:
            content = self._read()
        except OSError as e:
            return HostsCheck(all_present=False, error=str(e))

        missing = find_missing(content, expected_hostnames(instances))
        return HostsCheck(all_present=not missing, missing=missing)

    def ensure_entries(self, instances: int) -> StepResult:
        """Make sure every instance hostname resolves to loopback."""
        bad = count_error(instances)
        if bad:
            return StepResult.failure(ErrorKind.VALIDATION, bad)

        expected = expected_hostnames(instances)

        try:
            content = self._read()
        except OSError as e:
            logger.warning("Could not read %s: %s", self.hosts_file, e)
            return StepResult.failure(
                ErrorKind.IO,
                f"Could not read {self.hosts_file}: {e}",
                manual=manual_instructions(self.hosts_file, expected),
                missing=expected,
            )

        missing = find_missing(content, expected)
        if not missing:
            logger.info("Hosts file already has all %d entries", len(expected))
            return StepResult.success(message="All entries already exist", added=[])

        text = "\n".join(hosts_line(h) for h in missing) + "\n"
        if content and not content.endswith("\n"):
            text = "\n" + text

        logger.info(
            "Adding %d hosts entries to %s via %s",
            len(missing), self.hosts_file, self.executor.name,
        )
        result = self.executor.append(self.hosts_file, text)
        if result.failed:
            return StepResult.failure(
                result.kind or ErrorKind.PRIVILEGE,
                result.error,
                manual=manual_instructions(self.hosts_file, missing),
                missing=missing,
            )
        return StepResult.success(added=missing)

    def _read(self) -> str:
        # newline="" keeps "\r\n" intact so the anchored match sees real line ends
        with open(self.hosts_file, encoding="utf-8", errors="replace", newline="") as f:
            return f.read()


def default_mutator() -> HostsMutator:
    """Mutator for this machine: configured hosts path + platform executor."""
    from devenv_installer.adapters.elevation import select_executor
    from devenv_installer.core.config.loader import hosts_elevation_mode, hosts_file_path

    return HostsMutator(hosts_file_path(), select_executor(mode=hosts_elevation_mode()))
