"""
Formula models — a named, versioned list of tasks grouped by category.
"""

from __future__ import annotations

from pydantic import Field

from initbox.core.models.base import DocumentModel, ScalarStr
from initbox.core.models.task import ResolvedTask, TaskReference


class _FormulaMeta(DocumentModel):
    """Metadata shared by parsed and resolved formulas."""

    name: str
    version: str
    description: str | None = None
    author: str | None = None
    updated: str | None = None
    min_version: str | None = Field(default=None, alias="minVersion")
    categories: tuple[str, ...] | None = None
    variables: dict[str, ScalarStr] | None = None
    require_sudo: bool | None = Field(default=None, alias="require-sudo")

    @property
    def requires_sudo(self) -> bool:
        return bool(self.require_sudo)


class Formula(_FormulaMeta):
    """A parsed formula holding task references.

    ``tasks_url`` is the base URL for remote task documents; when absent
    every task must come from the local catalog.
    """

    tasks_url: str | None = Field(default=None, alias="tasksUrl")
    tasks: tuple[TaskReference, ...] = ()


class ResolvedFormula(_FormulaMeta):
    """A formula whose task references were replaced by full tasks."""

    tasks: tuple[ResolvedTask, ...] = ()

    def get_task(self, task_id: str) -> ResolvedTask | None:
        for task in self.tasks:
            if task.id == task_id:
                return task
        return None

    @property
    def task_ids(self) -> list[str]:
        return [t.id for t in self.tasks]

    def tasks_by_category(self) -> dict[str, list[ResolvedTask]]:
        """Group tasks by category, keeping formula order."""
        grouped: dict[str, list[ResolvedTask]] = {}
        for task in self.tasks:
            grouped.setdefault(task.category, []).append(task)
        return grouped
