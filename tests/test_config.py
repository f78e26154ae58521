"""
Tests for the setup-file loader and environment settings.
"""

import textwrap
from pathlib import Path

import pytest

from devenv_installer.core.config.loader import (
    ConfigError,
    default_work_dir,
    find_setup_file,
    hosts_elevation_mode,
    hosts_file_path,
    load_setup_config,
)


def _write(tmp_path: Path, content: str) -> Path:
    path = tmp_path / "devenv.yml"
    path.write_text(textwrap.dedent(content))
    return path


class TestLoadSetupConfig:
    def test_basic(self, tmp_path: Path):
        path = _write(tmp_path, """\
            instances: 3
            sshOption: skip
            setupHosts: true
        """)
        c = load_setup_config(path)
        assert c.instances == 3
        assert c.setup_hosts is True
        assert c.work_dir == tmp_path.resolve()

    def test_snake_case_keys(self, tmp_path: Path):
        c = load_setup_config(_write(tmp_path, "base_port: 9100\n"))
        assert c.base_port == 9100

    def test_explicit_work_dir(self, tmp_path: Path):
        other = tmp_path / "elsewhere"
        c = load_setup_config(_write(tmp_path, f"workDir: {other}\n"))
        assert c.work_dir == other

    def test_overrides_win(self, tmp_path: Path):
        path = _write(tmp_path, "instances: 3\n")
        c = load_setup_config(path, overrides={"instances": 4})
        assert c.instances == 4

    def test_empty_file(self, tmp_path: Path):
        c = load_setup_config(_write(tmp_path, ""))
        assert c.instances == 5

    def test_invalid_yaml(self, tmp_path: Path):
        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_setup_config(_write(tmp_path, "instances: [1, 2\n"))

    def test_not_a_mapping(self, tmp_path: Path):
        with pytest.raises(ConfigError, match="Expected a mapping"):
            load_setup_config(_write(tmp_path, "- a\n- b\n"))

    def test_validation_error(self, tmp_path: Path):
        with pytest.raises(ConfigError, match="instances"):
            load_setup_config(_write(tmp_path, "instances: 40\n"))

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(ConfigError, match="not found"):
            load_setup_config(tmp_path / "nope.yml")

    def test_none_found(self, tmp_path: Path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        with pytest.raises(ConfigError, match="No devenv.yml"):
            load_setup_config()


class TestFindSetupFile:
    def test_walks_up(self, tmp_path: Path):
        path = _write(tmp_path, "instances: 1\n")
        nested = tmp_path / "a" / "b"
        nested.mkdir(parents=True)
        assert find_setup_file(nested) == path.resolve()


class TestEnvironmentSettings:
    def test_hosts_file_override(self, monkeypatch, tmp_path: Path):
        monkeypatch.setenv("DEVENV_HOSTS_FILE", str(tmp_path / "hosts"))
        assert hosts_file_path() == tmp_path / "hosts"

    def test_hosts_file_default(self, monkeypatch):
        monkeypatch.delenv("DEVENV_HOSTS_FILE", raising=False)
        monkeypatch.setattr("devenv_installer.core.config.loader.sys.platform", "linux")
        assert hosts_file_path() == Path("/etc/hosts")

    def test_elevation_mode(self, monkeypatch):
        monkeypatch.delenv("DEVENV_HOSTS_ELEVATION", raising=False)
        assert hosts_elevation_mode() == "auto"
        monkeypatch.setenv("DEVENV_HOSTS_ELEVATION", "NONE")
        assert hosts_elevation_mode() == "none"
        monkeypatch.setenv("DEVENV_HOSTS_ELEVATION", "bogus")
        assert hosts_elevation_mode() == "auto"

    def test_work_dir(self, monkeypatch, tmp_path: Path):
        monkeypatch.setenv("DEVENV_WORK_DIR", str(tmp_path))
        assert default_work_dir() == tmp_path.resolve()
        monkeypatch.delenv("DEVENV_WORK_DIR")
        monkeypatch.chdir(tmp_path)
        assert default_work_dir() == Path.cwd()
