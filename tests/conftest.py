"""
Shared test fixtures and configuration.
"""

from pathlib import Path

import pytest

from devenv_installer.adapters.mock import MockExecutor, MockRuntime
from devenv_installer.core.services.hosts_ops import HostsMutator
from devenv_installer.core.services.progress import ProgressSink
from devenv_installer.core.services.setup_ops import Installer


class ListSink(ProgressSink):
    """Collects every emitted event, in order."""

    def __init__(self):
        self.events = []

    def emit(self, event):
        self.events.append(event)

    @property
    def progress(self):
        return [e for e in self.events if hasattr(e, "percent")]

    @property
    def percents(self):
        return [e.percent for e in self.progress]

    @property
    def chunks(self):
        return [e.chunk for e in self.events if hasattr(e, "chunk")]


@pytest.fixture
def sink() -> ListSink:
    return ListSink()


@pytest.fixture
def hosts_file(tmp_path: Path) -> Path:
    """A writable hosts file with typical default content."""
    path = tmp_path / "hosts"
    path.write_text("127.0.0.1 localhost\n::1 localhost\n", encoding="utf-8")
    return path


@pytest.fixture
def executor() -> MockExecutor:
    return MockExecutor()


@pytest.fixture
def runtime() -> MockRuntime:
    return MockRuntime()


@pytest.fixture
def work_dir(tmp_path: Path) -> Path:
    path = tmp_path / "work"
    path.mkdir()
    return path


@pytest.fixture
def ssh_source(tmp_path: Path) -> Path:
    """A fake ~/.ssh holding one ed25519 pair and known_hosts."""
    path = tmp_path / "dot-ssh"
    path.mkdir()
    (path / "id_ed25519").write_text("PRIVATE\n")
    (path / "id_ed25519.pub").write_text("ssh-ed25519 AAAA test@example.com\n")
    (path / "known_hosts").write_text("github.com ssh-ed25519 AAAA\n")
    return path


@pytest.fixture
def installer(runtime, executor, hosts_file, work_dir, ssh_source) -> Installer:
    return Installer(
        runtime=runtime,
        hosts=HostsMutator(hosts_file, executor),
        work_dir=work_dir,
        ssh_source=ssh_source,
    )
