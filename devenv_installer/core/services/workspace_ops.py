"""
Workspace operations — per-instance directories, SSH keys, GitHub auth.

Layout produced under the work directory::

    <workDir>/
        homes/instance-a/            mounted as the instance's home
        homes/instance-a/.git-credentials
        homes/instance-a/.gitconfig
        ssh/id_ed25519[.pub]         shared, mounted read-only

All functions return a ``StepResult``; filesystem errors become
``IOFailure`` results instead of exceptions.
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
from pathlib import Path
from urllib.parse import quote

from devenv_installer.core.models.config import instance_name
from devenv_installer.core.models.result import ErrorKind, StepResult

logger = logging.getLogger(__name__)

HOMES_DIR = "homes"

# Checked in order of preference
_KEY_NAMES = ("id_ed25519", "id_rsa", "id_ecdsa")


def home_dir(work_dir: Path, index: int) -> Path:
    return work_dir / HOMES_DIR / instance_name(index)


def _chmod(path: Path, mode: int) -> None:
    # No-op on Windows beyond the read-only bit
    try:
        os.chmod(path, mode)
    except OSError as e:
        logger.debug("chmod %o %s failed: %s", mode, path, e)


# ═══════════════════════════════════════════════════════════════════
#  Directories
# ═══════════════════════════════════════════════════════════════════


def create_home_directories(work_dir: Path, instances: int) -> StepResult:
    """Create ``homes/instance-<letter>`` for every instance."""
    created = []
    try:
        for i in range(1, instances + 1):
            path = home_dir(work_dir, i)
            path.mkdir(parents=True, exist_ok=True)
            created.append(str(path))
    except OSError as e:
        return StepResult.failure(ErrorKind.IO, f"Could not create directory: {e}")

    logger.info("Home directories ready: %d under %s", len(created), work_dir / HOMES_DIR)
    return StepResult.success(directories=created)


# ═══════════════════════════════════════════════════════════════════
#  SSH keys
# ═══════════════════════════════════════════════════════════════════


def user_ssh_dir() -> Path:
    return Path.home() / ".ssh"


def check_existing_ssh_keys(ssh_dir: Path | None = None) -> dict:
    """List key pairs present in ``~/.ssh``.

    Returns:
        ``{"exists": bool, "keys": [name, ...], "path": str}``
    """
    ssh_dir = ssh_dir or user_ssh_dir()
    keys = [name for name in _KEY_NAMES if (ssh_dir / name).is_file()]
    return {"exists": bool(keys), "keys": keys, "path": str(ssh_dir)}


def copy_ssh_keys(target_dir: Path, source_dir: Path | None = None) -> StepResult:
    """Copy the user's key pairs (and known_hosts) into *target_dir*."""
    source_dir = source_dir or user_ssh_dir()
    found = check_existing_ssh_keys(source_dir)
    if not found["exists"]:
        return StepResult.failure(ErrorKind.IO, f"No SSH keys found in {source_dir}")

    copied = []
    try:
        target_dir.mkdir(parents=True, exist_ok=True)
        for name in found["keys"]:
            shutil.copy2(source_dir / name, target_dir / name)
            _chmod(target_dir / name, 0o600)
            copied.append(name)
            pub = source_dir / f"{name}.pub"
            if pub.is_file():
                shutil.copy2(pub, target_dir / pub.name)
                copied.append(pub.name)
        known_hosts = source_dir / "known_hosts"
        if known_hosts.is_file():
            shutil.copy2(known_hosts, target_dir / "known_hosts")
            copied.append("known_hosts")
    except OSError as e:
        return StepResult.failure(ErrorKind.IO, f"Could not copy SSH keys: {e}")

    logger.info("Copied SSH material to %s: %s", target_dir, ", ".join(copied))
    return StepResult.success(copied=copied, path=str(target_dir))


def generate_ssh_keys(
    email: str,
    target_dir: Path,
    *,
    keygen: str = "ssh-keygen",
) -> StepResult:
    """Generate a passphrase-less ed25519 key pair in *target_dir*."""
    if not email.strip():
        return StepResult.failure(ErrorKind.VALIDATION, "An email is required to generate SSH keys")

    key_path = target_dir / "id_ed25519"
    if key_path.exists():
        logger.info("SSH key already exists at %s, keeping it", key_path)
        return StepResult.success(path=str(key_path), public_key=_read_public(key_path))

    try:
        target_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        return StepResult.failure(ErrorKind.IO, f"Could not create {target_dir}: {e}")

    cmd = [keygen, "-t", "ed25519", "-C", email, "-f", str(key_path), "-N", ""]
    try:
        r = subprocess.run(cmd, capture_output=True, text=True, timeout=60)
    except subprocess.TimeoutExpired:
        return StepResult.failure(ErrorKind.PROCESS, "ssh-keygen timed out")
    except OSError as e:
        return StepResult.failure(ErrorKind.LAUNCH, f"Failed to launch ssh-keygen: {e}")

    if r.returncode != 0:
        return StepResult.failure(
            ErrorKind.PROCESS,
            f"ssh-keygen failed with code {r.returncode}: {r.stderr.strip()}",
        )

    logger.info("Generated SSH key pair at %s", key_path)
    return StepResult.success(path=str(key_path), public_key=_read_public(key_path))


def _read_public(key_path: Path) -> str:
    pub = key_path.with_name(key_path.name + ".pub")
    try:
        return pub.read_text(encoding="utf-8").strip()
    except OSError:
        return ""


# ═══════════════════════════════════════════════════════════════════
#  GitHub auth
# ═══════════════════════════════════════════════════════════════════


def setup_github_auth(
    work_dir: Path,
    instances: int,
    username: str,
    token: str,
) -> StepResult:
    """Write git credential-store files into every instance home.

    The token is written to disk (mode 600) and never logged.
    """
    credential = f"https://{quote(username, safe='')}:{quote(token, safe='')}@github.com\n"
    gitconfig = (
        "[credential]\n"
        "\thelper = store\n"
        "[user]\n"
        f"\tname = {username}\n"
    )

    try:
        for i in range(1, instances + 1):
            home = home_dir(work_dir, i)
            home.mkdir(parents=True, exist_ok=True)
            creds = home / ".git-credentials"
            creds.write_text(credential, encoding="utf-8")
            _chmod(creds, 0o600)
            (home / ".gitconfig").write_text(gitconfig, encoding="utf-8")
    except OSError as e:
        return StepResult.failure(ErrorKind.IO, f"Could not write GitHub credentials: {e}")

    logger.info("GitHub credentials configured for %d instance(s) as %s", instances, username)
    return StepResult.success()
