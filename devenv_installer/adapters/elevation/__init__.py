"""Elevated executors — one per platform family, chosen once at startup."""

from __future__ import annotations

import logging
import os
import sys

from devenv_installer.adapters.base import ElevatedExecutor
from devenv_installer.adapters.elevation.posix import DirectWriteExecutor, SudoExecutor
from devenv_installer.adapters.elevation.windows import PowerShellExecutor

logger = logging.getLogger(__name__)


def select_executor(
    platform: str | None = None,
    *,
    mode: str = "auto",
    is_root: bool | None = None,
) -> ElevatedExecutor:
    """Pick the executor for this host.

    Args:
        platform: ``sys.platform`` value (default: the running one).
        mode: ``auto`` or ``none``.  ``none`` skips elevation entirely
            for hosts files the current user can already write.
        is_root: Override the effective-uid check (POSIX only).
    """
    platform = platform or sys.platform

    if mode == "none":
        executor: ElevatedExecutor = DirectWriteExecutor()
    elif platform == "win32":
        executor = PowerShellExecutor()
    else:
        if is_root is None:
            is_root = hasattr(os, "geteuid") and os.geteuid() == 0
        executor = DirectWriteExecutor() if is_root else SudoExecutor()

    logger.debug("Elevated executor for %s (mode=%s): %s", platform, mode, executor.name)
    return executor


__all__ = [
    "DirectWriteExecutor",
    "PowerShellExecutor",
    "SudoExecutor",
    "select_executor",
]
