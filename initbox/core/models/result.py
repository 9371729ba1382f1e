"""
Result records — the execution contract.

Steps, tasks, and runs each produce one immutable record. The engine
never raises for execution failures; they are captured here so a run
always yields a complete, inspectable ``InstallResult``.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from initbox.core.models.formula import ResolvedFormula
from initbox.core.models.step import InstallStep
from initbox.core.models.task import ResolvedTask


def _now() -> datetime:
    return datetime.now(UTC)


class _Record(BaseModel):
    model_config = ConfigDict(frozen=True)


class VersionCheckResult(_Record):
    """Outcome of probing a task's installed version."""

    installed: bool
    needs_update: bool
    message: str = ""
    current_version: str | None = None

    @property
    def satisfied(self) -> bool:
        """Installed and nothing to do."""
        return self.installed and not self.needs_update


class StepResult(_Record):
    """Result of one install step.

    For optional steps ``success`` is True even when the command failed;
    ``error`` then records the underlying failure.
    """

    step: InstallStep
    success: bool
    output: str | None = None
    error: str | None = None
    duration_ms: int = 0

    @classmethod
    def skipped(cls, step: InstallStep, reason: str) -> StepResult:
        return cls(step=step, success=True, output=reason, duration_ms=0)


class TaskResult(_Record):
    """Result of one task: its step results, or why it was skipped."""

    task: ResolvedTask
    success: bool
    steps: tuple[StepResult, ...] = ()
    skipped: bool = False
    skip_reason: str | None = None
    current_version: str | None = None

    @property
    def ok(self) -> bool:
        """Counts toward overall run success."""
        return self.success or self.skipped

    @property
    def status(self) -> str:
        if self.skipped:
            return "skipped"
        return "ok" if self.success else "failed"


class InstallResult(_Record):
    """Overall result of executing a formula."""

    formula: ResolvedFormula
    success: bool
    tasks: tuple[TaskResult, ...] = ()
    start_time: datetime = Field(default_factory=_now)
    end_time: datetime = Field(default_factory=_now)
    total_duration_ms: int = 0

    @property
    def installed(self) -> list[TaskResult]:
        """Tasks whose steps ran and succeeded."""
        return [r for r in self.tasks if r.success and not r.skipped]

    @property
    def already_satisfied(self) -> list[TaskResult]:
        """Tasks skipped because the installed version already fits."""
        return [r for r in self.tasks if r.skipped and r.success]

    @property
    def failed(self) -> list[TaskResult]:
        return [r for r in self.tasks if not r.success and not r.skipped]

    @property
    def skipped(self) -> list[TaskResult]:
        """Tasks skipped for any other reason (e.g. missing dependencies)."""
        return [r for r in self.tasks if r.skipped and not r.success]

    def to_dict(self) -> dict[str, Any]:
        return {
            "formula": self.formula.name,
            "version": self.formula.version,
            "success": self.success,
            "installed": len(self.installed),
            "already_satisfied": len(self.already_satisfied),
            "failed": len(self.failed),
            "skipped": len(self.skipped),
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat(),
            "total_duration_ms": self.total_duration_ms,
            "tasks": [
                {
                    "id": r.task.id,
                    "name": r.task.name,
                    "category": r.task.category,
                    "status": r.status,
                    "success": r.success,
                    "skip_reason": r.skip_reason,
                    "current_version": r.current_version,
                    "steps": [
                        {
                            "name": s.step.name,
                            "success": s.success,
                            "output": s.output,
                            "error": s.error,
                            "duration_ms": s.duration_ms,
                        }
                        for s in r.steps
                    ],
                }
                for r in self.tasks
            ],
        }
