"""
Version check — probes whether a task's tool is already installed.

Runs the task's ``versionCommand``, extracts a version from the output,
and matches it against the desired constraint. Probe failures of any
kind mean "not installed"; they are never raised.
"""

from __future__ import annotations

import logging
import re

from initbox.adapters.base import (
    ProcessRunner,
    ProcessSpawnError,
    ProcessTimeoutError,
)
from initbox.core.engine.commands import shell_command
from initbox.core.engine.step_executor import current_platform
from initbox.core.engine.versions import satisfies
from initbox.core.errors import VersionCheckError
from initbox.core.models.result import VersionCheckResult
from initbox.core.models.task import TaskDefinition

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10

# First version-looking token, e.g. "1.2.3", "v1.2", "2.0.0-rc.1"
DEFAULT_VERSION_PATTERN = re.compile(r"v?(\d+\.\d+(?:\.\d+)?(?:[-+][a-zA-Z0-9.]+)?)")


def parse_version_output(output: str, pattern: str | None = None) -> str | None:
    """Extract a version string from command output.

    Uses the first capture group of ``pattern`` when given, else
    ``DEFAULT_VERSION_PATTERN``. An invalid pattern matches nothing.
    """
    if pattern:
        try:
            match = re.search(pattern, output)
        except re.error as e:
            logger.warning("Invalid version regex %r: %s", pattern, e)
            return None
        if not match or not match.groups():
            return None
        return match.group(1)

    match = DEFAULT_VERSION_PATTERN.search(output)
    return match.group(1) if match else None


class VersionChecker:
    """Check installed versions through a ``ProcessRunner``."""

    def __init__(
        self,
        runner: ProcessRunner,
        timeout: float = DEFAULT_TIMEOUT,
        platform: str | None = None,
    ):
        self._runner = runner
        self._timeout = timeout
        self._platform = platform or current_platform()

    def check(self, task: TaskDefinition, constraint: str = "latest") -> VersionCheckResult:
        """Report whether ``task`` is installed and satisfies ``constraint``."""
        if not task.version_command:
            return VersionCheckResult(
                installed=False,
                needs_update=True,
                message=f"Version check not supported for {task.name}",
            )

        try:
            output = self._probe(task.version_command)
        except VersionCheckError as e:
            logger.debug("Version check for %s failed: %s", task.id, e)
            return VersionCheckResult(
                installed=False,
                needs_update=True,
                message=f"{task.name} is not installed",
            )

        current = parse_version_output(output, task.version_parse_regex)
        if not current:
            return VersionCheckResult(
                installed=True,
                needs_update=False,
                message=f"{task.name} is installed (version unknown)",
            )

        ok = satisfies(current, constraint)
        verb = "satisfies" if ok else "does not satisfy"
        return VersionCheckResult(
            installed=True,
            needs_update=not ok,
            current_version=current,
            message=f"{task.name} {current} {verb} {constraint}",
        )

    def _probe(self, command: str) -> str:
        """Run the check command; stdout and stderr are both searched."""
        cmd = shell_command(command, self._platform)
        try:
            result = self._runner.run(cmd.argv, timeout=self._timeout)
        except ProcessTimeoutError as e:
            raise VersionCheckError(f"timed out after {self._timeout}s") from e
        except ProcessSpawnError as e:
            raise VersionCheckError(str(e)) from e

        if not result.ok:
            raise VersionCheckError(f"exit code {result.returncode}")

        # Some tools print their version on stderr
        return (result.stdout.strip() + "\n" + result.stderr.strip()).strip()
