"""
Configuration loader — reads a setup file into ``ProvisioningConfig``.

The CLI accepts a ``devenv.yml`` describing the run instead of the
wizard fields the graphical front-ends collect.  Keys may use the
front-end's camelCase names or snake_case.

Process-level settings come from environment variables:

    DEVENV_WORK_DIR         default work directory
    DEVENV_HOSTS_FILE       hosts file path override
    DEVENV_HOSTS_ELEVATION  ``auto`` (default) or ``none``
"""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from devenv_installer.core.models.config import ProvisioningConfig

logger = logging.getLogger(__name__)

SETUP_CONFIG_FILE = "devenv.yml"

_WINDOWS_HOSTS = Path(r"C:\Windows\System32\drivers\etc\hosts")
_POSIX_HOSTS = Path("/etc/hosts")


class ConfigError(Exception):
    """Raised when a setup file is missing or invalid."""


def find_setup_file(start_dir: Path | None = None) -> Path | None:
    """Search for devenv.yml starting from the given directory, walking up."""
    current = (start_dir or Path.cwd()).resolve()

    for _ in range(20):  # safety limit
        candidate = current / SETUP_CONFIG_FILE
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            break
        current = parent

    return None


def load_setup_config(
    path: Path | None = None,
    *,
    overrides: dict[str, Any] | None = None,
) -> ProvisioningConfig:
    """Load and validate a setup file.

    ``workDir`` defaults to the directory holding the file.  Values in
    *overrides* win over the file.

    Raises:
        ConfigError: If the file is missing, unparsable or invalid.
    """
    if path is None:
        path = find_setup_file()

    if path is None:
        raise ConfigError(
            f"No {SETUP_CONFIG_FILE} found. Create one or pass --config."
        )

    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    logger.debug("Loading setup config from %s", path)

    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ConfigError(f"Expected a mapping in {path}, got {type(raw).__name__}")

    data = dict(raw)
    data.update(overrides or {})
    if "workDir" not in data and "work_dir" not in data:
        data["workDir"] = str(path.parent.resolve())

    return parse_config(data)


def parse_config(data: dict[str, Any]) -> ProvisioningConfig:
    """Validate a raw config mapping.

    Raises:
        ConfigError: With pydantic's messages flattened into one line.
    """
    try:
        return ProvisioningConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(format_validation_error(e)) from e


def format_validation_error(error: ValidationError) -> str:
    """One-line summary of a pydantic ValidationError."""
    parts = []
    for err in error.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()))
        msg = err.get("msg", "invalid")
        parts.append(f"{loc}: {msg}" if loc else msg)
    return "Invalid configuration: " + "; ".join(parts)


# ── Environment settings ───────────────────────────────────────


def default_work_dir() -> Path:
    """Work directory used when a request doesn't name one."""
    env = os.environ.get("DEVENV_WORK_DIR")
    return Path(env).expanduser().resolve() if env else Path.cwd()


def hosts_file_path() -> Path:
    """System hosts file, unless DEVENV_HOSTS_FILE points elsewhere."""
    env = os.environ.get("DEVENV_HOSTS_FILE")
    if env:
        return Path(env)
    return _WINDOWS_HOSTS if sys.platform == "win32" else _POSIX_HOSTS


def hosts_elevation_mode() -> str:
    """``auto`` picks the platform's elevation; ``none`` writes directly."""
    mode = os.environ.get("DEVENV_HOSTS_ELEVATION", "auto").strip().lower()
    if mode not in ("auto", "none"):
        logger.warning("Unknown DEVENV_HOSTS_ELEVATION=%r, using 'auto'", mode)
        return "auto"
    return mode
