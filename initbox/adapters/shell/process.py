"""
Subprocess runner — the single place ``subprocess.run`` is called.

Step execution and version checks both come through here, so
environment merging, logging, and error mapping live in one spot.
"""

from __future__ import annotations

import logging
import os
import subprocess
import time
from collections.abc import Mapping, Sequence

from initbox.adapters.base import (
    ProcessResult,
    ProcessRunner,
    ProcessSpawnError,
    ProcessTimeoutError,
)

logger = logging.getLogger(__name__)


def merge_env(overrides: Mapping[str, str] | None) -> dict[str, str]:
    """Process environment with ``overrides`` applied (``$VAR`` expanded)."""
    env = os.environ.copy()
    if overrides:
        for key, value in overrides.items():
            env[key] = os.path.expandvars(value)
    return env


class SubprocessRunner(ProcessRunner):
    """Run commands with ``subprocess.run`` and capture stdout/stderr."""

    def run(
        self,
        cmd: Sequence[str],
        *,
        env: Mapping[str, str] | None = None,
        cwd: str | None = None,
        timeout: float | None = None,
    ) -> ProcessResult:
        cmd = list(cmd)
        logger.debug("Executing: %s (cwd=%s)", cmd, cwd)
        start = time.monotonic()

        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
                timeout=timeout,
                env=merge_env(env),
                cwd=cwd,
                stdin=subprocess.DEVNULL,
            )
        except subprocess.TimeoutExpired as e:
            raise ProcessTimeoutError(cmd, timeout or 0) from e
        except OSError as e:
            # FileNotFoundError, PermissionError, bad cwd
            raise ProcessSpawnError(f"Cannot run {cmd[0]}: {e}") from e
        except ValueError as e:
            # Embedded NUL in an argument or environment value
            raise ProcessSpawnError(f"Cannot run {cmd[0]}: {e}") from e

        elapsed_ms = int((time.monotonic() - start) * 1000)
        logger.debug("%s exited with %d in %dms", cmd[0], result.returncode, elapsed_ms)

        return ProcessResult(
            cmd=cmd,
            returncode=result.returncode,
            stdout=result.stdout or "",
            stderr=result.stderr or "",
            elapsed_ms=elapsed_ms,
        )
