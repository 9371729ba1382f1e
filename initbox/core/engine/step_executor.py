"""
Step executor — runs one install step as a child process.

Never raises for command failures: every outcome becomes a
``StepResult``. Optional steps report ``success=True`` with the
underlying failure kept in ``error``.

There is no timeout on install commands; a hung installer blocks the
run until it exits.
"""

from __future__ import annotations

import logging
import os
import sys
import time

from initbox.adapters.base import (
    ProcessRunner,
    ProcessSpawnError,
    ProcessTimeoutError,
)
from initbox.core.engine.commands import StepCommand, build_command, shell_command
from initbox.core.errors import StepExecutionError
from initbox.core.models.result import StepResult
from initbox.core.models.step import InstallStep

logger = logging.getLogger(__name__)

# Keep the tail of long installer output
_MAX_OUTPUT = 2000


def current_platform() -> str:
    """Platform identifier in the ``linux`` / ``darwin`` / ``win32`` form."""
    return sys.platform


def running_as_root() -> bool:
    geteuid = getattr(os, "geteuid", None)
    return geteuid is not None and geteuid() == 0


class StepExecutor:
    """Execute install steps through a ``ProcessRunner``."""

    def __init__(
        self,
        runner: ProcessRunner,
        platform: str | None = None,
        as_root: bool | None = None,
    ):
        self._runner = runner
        self._platform = platform or current_platform()
        self._as_root = running_as_root() if as_root is None else as_root

    @property
    def platform(self) -> str:
        return self._platform

    def execute(self, step: InstallStep) -> StepResult:
        """Run ``step`` and its post-install commands."""
        start = time.monotonic()

        command = build_command(step, self._platform, as_root=self._as_root)
        if command is None:
            logger.debug("Step '%s' not applicable on %s", step.name, self._platform)
            return StepResult.skipped(
                step, f"Skipped: not applicable for {self._platform}"
            )

        try:
            output = self._run(command, step)
            for post in step.post_install:
                self._run(shell_command(post, self._platform), step)
        except StepExecutionError as e:
            elapsed_ms = int((time.monotonic() - start) * 1000)
            if step.optional:
                logger.warning("Optional step '%s' failed: %s", step.name, e)
            else:
                logger.error("Step '%s' failed: %s", step.name, e)
            return StepResult(
                step=step,
                success=step.optional,
                error=str(e),
                duration_ms=elapsed_ms,
            )

        return StepResult(
            step=step,
            success=True,
            output=output,
            duration_ms=int((time.monotonic() - start) * 1000),
        )

    def _run(self, command: StepCommand, step: InstallStep) -> str:
        """Run one command; raise ``StepExecutionError`` unless it exits 0."""
        try:
            result = self._runner.run(command.argv, env=step.env, cwd=step.cwd)
        except (ProcessSpawnError, ProcessTimeoutError) as e:
            raise StepExecutionError(str(e)) from e

        if not result.ok:
            stderr = result.stderr.strip()
            raise StepExecutionError(
                stderr[-_MAX_OUTPUT:] or f"Command failed with exit code {result.returncode}",
                exit_code=result.returncode,
            )
        return result.stdout[-_MAX_OUTPUT:]
