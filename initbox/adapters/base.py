"""
Adapter base — the contract between the engine and the outside world.

The engine never calls ``subprocess`` or the network directly. It goes
through a ``ProcessRunner`` (external commands) and a ``Fetcher``
(remote documents), so tests and mock runs can swap both out.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence

from pydantic import BaseModel, Field


class ProcessSpawnError(Exception):
    """The process could not be started (binary missing, permission denied)."""


class ProcessTimeoutError(Exception):
    """The process did not finish within its timeout."""

    def __init__(self, cmd: Sequence[str], timeout: float):
        super().__init__(f"Command timed out after {timeout}s: {' '.join(cmd)}")
        self.cmd = list(cmd)
        self.timeout = timeout


class FetchError(Exception):
    """Transport-level failure while fetching a URL."""


class ProcessResult(BaseModel):
    """Exit status and captured output of a finished process."""

    cmd: list[str] = Field(default_factory=list)
    returncode: int = 0
    stdout: str = ""
    stderr: str = ""
    elapsed_ms: int = 0

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class FetchResponse(BaseModel):
    """Status and body text of a fetched URL."""

    url: str
    status: int
    text: str = ""

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


class ProcessRunner(ABC):
    """Runs external commands.

    Implementations return a ``ProcessResult`` for any process that ran
    (whatever its exit code) and raise ``ProcessSpawnError`` or
    ``ProcessTimeoutError`` otherwise.
    """

    @abstractmethod
    def run(
        self,
        cmd: Sequence[str],
        *,
        env: Mapping[str, str] | None = None,
        cwd: str | None = None,
        timeout: float | None = None,
    ) -> ProcessResult:
        """Run ``cmd`` to completion.

        Args:
            cmd: Program and arguments.
            env: Overrides layered on top of the process environment.
            cwd: Working directory.
            timeout: Seconds before giving up; ``None`` waits forever.
        """

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}>"


class Fetcher(ABC):
    """Fetches text documents by URL."""

    @abstractmethod
    def fetch(self, url: str) -> FetchResponse:
        """Return the response for ``url``; raise ``FetchError`` on transport failure."""
