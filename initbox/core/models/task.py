"""
Task models — what a tool is and how a formula refers to it.

``TaskDefinition`` is the full description of an installable tool,
loaded from ``tasks/<id>/task.yaml``. ``TaskReference`` is the minimal
entry a formula lists. Resolution merges the two into a
``ResolvedTask``.
"""

from __future__ import annotations

from pydantic import Field

from initbox.core.models.base import DocumentModel
from initbox.core.models.step import InstallStep


class TaskReference(DocumentModel):
    """A task entry inside a formula."""

    id: str
    category: str
    version: str | None = None   # desired-version constraint


class TaskDefinition(DocumentModel):
    """Full definition of an installable tool.

    A task without steps is legal (metadata-only tasks).
    """

    id: str
    name: str
    description: str | None = None
    homepage: str | None = None
    tags: tuple[str, ...] = ()
    dependencies: tuple[str, ...] = ()
    steps: tuple[InstallStep, ...] = ()
    version_command: str | None = Field(default=None, alias="versionCommand")
    version_parse_regex: str | None = Field(default=None, alias="versionParseRegex")
    require_sudo: bool | None = Field(default=None, alias="require-sudo")

    @property
    def requires_sudo(self) -> bool:
        return bool(self.require_sudo)


class ResolvedTask(TaskDefinition):
    """A task definition merged with its formula reference."""

    category: str
    version: str | None = None

    @property
    def constraint(self) -> str:
        """Desired-version constraint, ``latest`` when none was given."""
        return self.version or "latest"

    @classmethod
    def from_reference(
        cls, definition: TaskDefinition, reference: TaskReference
    ) -> ResolvedTask:
        data = definition.model_dump(exclude_unset=True)
        data["category"] = reference.category
        if reference.version is not None:
            data["version"] = reference.version
        return cls(**data)
