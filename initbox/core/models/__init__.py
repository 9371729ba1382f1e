"""
Domain models — pydantic types for formulas, tasks, and results.

All models are re-exported here for convenient access:

    from initbox.core.models import Formula, ResolvedTask, InstallResult
"""

from initbox.core.models.formula import Formula, ResolvedFormula
from initbox.core.models.result import (
    InstallResult,
    StepResult,
    TaskResult,
    VersionCheckResult,
)
from initbox.core.models.step import PACKAGE_MANAGER_KINDS, InstallStep, StepKind
from initbox.core.models.task import ResolvedTask, TaskDefinition, TaskReference

__all__ = [
    # formula.py
    "Formula",
    "InstallResult",
    # step.py
    "InstallStep",
    "PACKAGE_MANAGER_KINDS",
    "ResolvedFormula",
    # task.py
    "ResolvedTask",
    "StepKind",
    # result.py
    "StepResult",
    "TaskDefinition",
    "TaskReference",
    "TaskResult",
    "VersionCheckResult",
]
