"""
Step command builder (pure).

Maps an install step to the external command that performs it on a
given platform. No I/O, no subprocess.
"""

from __future__ import annotations

import shlex

from pydantic import BaseModel

from initbox.core.models.step import InstallStep, StepKind

WINDOWS = "win32"


class StepCommand(BaseModel):
    """A concrete program + argument list."""

    program: str
    args: list[str]

    @property
    def argv(self) -> list[str]:
        return [self.program, *self.args]


def shell_command(command: str, platform: str) -> StepCommand:
    """Run a literal command line through the platform shell."""
    if platform == WINDOWS:
        return StepCommand(program="cmd", args=["/c", command])
    return StepCommand(program="sh", args=["-c", command])


def build_command(
    step: InstallStep, platform: str, *, as_root: bool = False
) -> StepCommand | None:
    """Build the command for ``step`` on ``platform``.

    Returns None when the step does not apply to ``platform``.

    Args:
        step: The step to translate.
        platform: Platform identifier (``linux``, ``darwin``, ``win32``).
        as_root: Whether the engine already runs as root, in which case
            the ``sudo`` prefix for apt is dropped.
    """
    if not step.runs_on(platform):
        return None

    extra = list(step.args)

    if step.type is StepKind.BREW:
        return StepCommand(program="brew", args=["install", step.command, *extra])

    if step.type is StepKind.NPM:
        return StepCommand(program="npm", args=["install", "-g", step.command, *extra])

    if step.type is StepKind.PIP:
        return StepCommand(program="pip3", args=["install", step.command, *extra])

    if step.type is StepKind.APT:
        apt = ["apt-get", "install", "-y", step.command, *extra]
        if as_root:
            return StepCommand(program=apt[0], args=apt[1:])
        return StepCommand(program="sudo", args=apt)

    if step.type is StepKind.SHELL:
        return shell_command(_join(step.command, extra), platform)

    if step.type is StepKind.CURL:
        script = f"curl -fsSL {shlex.quote(step.command)} | sh"
        if extra:
            script += " -s -- " + " ".join(shlex.quote(a) for a in extra)
        return StepCommand(program="sh", args=["-c", script])

    if step.type is StepKind.GIT:
        return StepCommand(program="git", args=["clone", step.command, *extra])

    raise ValueError(f"Unknown step type: {step.type}")


def _join(command: str, extra: list[str]) -> str:
    if not extra:
        return command
    return command + " " + " ".join(shlex.quote(a) for a in extra)
