"""
Install step model — one shell-level action of a task.
"""

from __future__ import annotations

from enum import Enum

from pydantic import Field

from initbox.core.models.base import DocumentModel, ScalarStr


class StepKind(str, Enum):
    """Closed set of step kinds understood by the command builder."""

    BREW = "brew"
    NPM = "npm"
    PIP = "pip"
    APT = "apt"
    SHELL = "shell"
    CURL = "curl"
    GIT = "git"

    @classmethod
    def values(cls) -> list[str]:
        return [k.value for k in cls]


# Kinds that install a named package through a package manager
PACKAGE_MANAGER_KINDS = frozenset({StepKind.BREW, StepKind.NPM, StepKind.PIP, StepKind.APT})


class InstallStep(DocumentModel):
    """A single installation step.

    ``command`` is the package name for package-manager kinds, the
    literal command line for ``shell``, the script URL for ``curl`` and
    the repository URL for ``git``.
    """

    name: str
    type: StepKind
    command: str
    args: tuple[str, ...] = ()
    optional: bool = False
    platforms: tuple[str, ...] = ()        # empty = every platform
    env: dict[str, ScalarStr] = Field(default_factory=dict)
    cwd: str | None = None
    post_install: tuple[str, ...] = Field(default=(), alias="postInstall")

    def runs_on(self, platform: str) -> bool:
        """Whether this step applies to the given platform identifier."""
        return not self.platforms or platform in self.platforms
