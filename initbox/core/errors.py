"""
Error taxonomy for the formula engine.

Validation and resolution errors are raised to the caller before anything
runs. Step and version-check errors are raised internally and converted
into result records by the engine; they never escape an ``execute`` call.
"""

from __future__ import annotations


class InitboxError(Exception):
    """Base class for all engine errors."""


class ValidationError(InitboxError):
    """A formula or task document is structurally invalid.

    Attributes:
        field: Dotted path of the offending field (e.g. ``tasks[2].category``).
        index: Array index involved, when the field sits inside a list.
    """

    def __init__(self, message: str, field: str = "", index: int | None = None):
        super().__init__(message)
        self.message = message
        self.field = field
        self.index = index


class UnresolvedTaskError(InitboxError):
    """A task reference could not be resolved locally or remotely."""

    def __init__(
        self,
        task_id: str,
        available: list[str] | None = None,
        reason: str = "",
    ):
        self.task_id = task_id
        self.available = list(available or [])
        self.reason = reason

        message = f'Task "{task_id}" could not be resolved'
        if reason:
            message += f": {reason}"
        if self.available:
            message += f". Available tasks: {', '.join(self.available)}"
        super().__init__(message)


class StepExecutionError(InitboxError):
    """An install step's external command failed."""

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        self.exit_code = exit_code


class VersionCheckError(InitboxError):
    """A version-check command failed, timed out, or could not start."""
