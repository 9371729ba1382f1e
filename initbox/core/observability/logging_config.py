"""
Logging setup for the ``initbox`` command.

Called once by ``initbox.main`` before any work happens; library code
only ever does ``logger = logging.getLogger(__name__)``.

Console level precedence:
    --debug  >  --verbose  >  --quiet  >  INITBOX_LOG_LEVEL  >  WARNING

A second, more detailed log can be written to INITBOX_LOG_FILE at
INITBOX_LOG_FILE_LEVEL.
"""

from __future__ import annotations

import logging
import os
import sys

ENV_LEVEL = "INITBOX_LOG_LEVEL"
ENV_FILE = "INITBOX_LOG_FILE"
ENV_FILE_LEVEL = "INITBOX_LOG_FILE_LEVEL"

# ── Formats ─────────────────────────────────────────────────────

_FMT_DEBUG = "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d — %(message)s"
_FMT_INFO = "%(asctime)s %(message)s"
_DATEFMT_CONSOLE = "%H:%M:%S"
_FMT_PLAIN = "%(levelname)s: %(message)s"

_FMT_FILE = "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d — %(message)s"
_DATEFMT_FILE = "%Y-%m-%d %H:%M:%S"

# Stays at WARNING unless we are debugging
_NOISY_LOGGERS = ("urllib3", "urllib.request")


def resolve_level(
    debug: bool = False,
    verbose: bool = False,
    quiet: bool = False,
    env_level: str | None = None,
) -> str:
    """Pick the console level name from CLI flags and the environment."""
    if debug:
        return "DEBUG"
    if verbose:
        return "INFO"
    if quiet:
        return "ERROR"
    if env_level is None:
        env_level = os.environ.get(ENV_LEVEL)
    return (env_level or "WARNING").upper()


def setup_logging(
    level: str = "WARNING",
    log_file: str | None = None,
    log_file_level: str | None = None,
) -> None:
    """Configure the root logger for the whole process.

    Args:
        level: Console level name (DEBUG, INFO, WARNING, ERROR).
        log_file: Optional log file path; defaults to INITBOX_LOG_FILE.
        log_file_level: Level for the file; defaults to
            INITBOX_LOG_FILE_LEVEL, then to ``level``.
    """
    console_level = _parse_level(level)
    log_file = log_file or os.environ.get(ENV_FILE)
    log_file_level = log_file_level or os.environ.get(ENV_FILE_LEVEL)

    if console_level <= logging.DEBUG:
        fmt, datefmt = _FMT_DEBUG, _DATEFMT_CONSOLE
    elif console_level <= logging.INFO:
        fmt, datefmt = _FMT_INFO, _DATEFMT_CONSOLE
    else:
        fmt, datefmt = _FMT_PLAIN, None
    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(logging.Formatter(fmt, datefmt=datefmt))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(console)
    root_level = console_level

    if log_file:
        file_level = _parse_level(log_file_level) if log_file_level else console_level
        root_level = min(root_level, file_level)

        handler = logging.FileHandler(log_file, encoding="utf-8")
        handler.setLevel(file_level)
        handler.setFormatter(logging.Formatter(_FMT_FILE, datefmt=_DATEFMT_FILE))
        root.addHandler(handler)

    root.setLevel(root_level)

    if console_level > logging.DEBUG:
        for name in _NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)


def _parse_level(level: str | None) -> int:
    """Level name to its numeric value; unknown names mean WARNING."""
    if not level:
        return logging.WARNING
    numeric = getattr(logging, level.upper(), None)
    if not isinstance(numeric, int):
        return logging.WARNING
    return numeric
