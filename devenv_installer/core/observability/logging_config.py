"""
Logging configuration for the CLI and the web server.

``main.py`` calls ``setup_logging`` once; modules only ever do
``logger = logging.getLogger(__name__)``.

Console level, first match wins:
    --debug / --verbose / --quiet  >  DEVENV_LOG_LEVEL  >  WARNING

DEVENV_LOG_FILE adds a file handler, at DEVENV_LOG_FILE_LEVEL if set.
"""

from __future__ import annotations

import logging
import os
import sys

# (format, datefmt) per console tier
_CONSOLE_FORMATS: dict[int, tuple[str, str | None]] = {
    logging.DEBUG: ("%(asctime)s %(levelname)-5s %(name)s:%(lineno)d  %(message)s", "%H:%M:%S"),
    logging.INFO: ("%(asctime)s [%(name)s] %(message)s", "%H:%M:%S"),
    logging.WARNING: ("%(message)s", None),
}

_FILE_FORMAT = "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d  %(message)s"
_FILE_DATEFMT = "%Y-%m-%d %H:%M:%S"

# werkzeug logs one line per request at INFO
_NOISY_LOGGERS = ("werkzeug", "urllib3")


def resolve_level(*, debug: bool = False, verbose: bool = False, quiet: bool = False) -> str:
    """Console level name from the global CLI flags and DEVENV_LOG_LEVEL."""
    if debug:
        return "DEBUG"
    if verbose:
        return "INFO"
    if quiet:
        return "ERROR"
    return os.environ.get("DEVENV_LOG_LEVEL", "WARNING")


def setup_logging(
    level: str = "WARNING",
    log_file: str | None = None,
    log_file_level: str | None = None,
    quiet_third_party: bool = True,
) -> None:
    """Replace the root logger's handlers.

    Args:
        level: Console level name.
        log_file: Optional log file path (default: DEVENV_LOG_FILE).
        log_file_level: Level for the file (default: DEVENV_LOG_FILE_LEVEL,
            then ``level``).
        quiet_third_party: Hold werkzeug and urllib3 at WARNING unless
            the console is at DEBUG.
    """
    console_level = _parse_level(level)
    log_file = log_file or os.environ.get("DEVENV_LOG_FILE")
    log_file_level = log_file_level or os.environ.get("DEVENV_LOG_FILE_LEVEL")

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(_console_handler(console_level))
    root_level = console_level

    if log_file:
        file_level = _parse_level(log_file_level) if log_file_level else console_level
        root.addHandler(_file_handler(log_file, file_level))
        root_level = min(root_level, file_level)

    root.setLevel(root_level)

    if quiet_third_party and console_level > logging.DEBUG:
        for name in _NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

    logging.raiseExceptions = False


def _console_handler(level: int) -> logging.Handler:
    tier = max(t for t in _CONSOLE_FORMATS if t <= max(level, logging.DEBUG))
    fmt, datefmt = _CONSOLE_FORMATS[tier]
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt, datefmt=datefmt))
    return handler


def _file_handler(path: str, level: int) -> logging.Handler:
    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(_FILE_FORMAT, datefmt=_FILE_DATEFMT))
    return handler


def _parse_level(level: str | None) -> int:
    """Level name to its numeric value; unknown names mean WARNING."""
    numeric = getattr(logging, (level or "").upper(), None)
    return numeric if isinstance(numeric, int) else logging.WARNING
