"""
Mock adapters — test doubles for processes and the network.

Used by tests and ``--mock`` runs to simulate a machine without
touching it. By default every command succeeds with empty output;
responses can be scripted per command prefix.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field

from initbox.adapters.base import (
    Fetcher,
    FetchError,
    FetchResponse,
    ProcessResult,
    ProcessRunner,
    ProcessSpawnError,
    ProcessTimeoutError,
)


@dataclass
class ProcessCall:
    """One recorded ``run`` invocation."""

    cmd: list[str]
    env: dict[str, str] = field(default_factory=dict)
    cwd: str | None = None
    timeout: float | None = None

    @property
    def line(self) -> str:
        return " ".join(self.cmd)


class MockProcessRunner(ProcessRunner):
    """Scriptable process runner.

    Responses are matched against the command joined with spaces: the
    longest registered prefix that matches wins. Matching is done on
    the full line, so ``sh -c "jq --version"`` can be scripted as
    ``"sh -c jq --version"``.
    """

    def __init__(self, default_stdout: str = ""):
        self._default_stdout = default_stdout
        self._responses: dict[str, ProcessResult | Exception] = {}
        self._call_log: list[ProcessCall] = []

    @property
    def call_log(self) -> list[ProcessCall]:
        return self._call_log

    @property
    def call_count(self) -> int:
        return len(self._call_log)

    @property
    def lines(self) -> list[str]:
        """Every command run so far, joined with spaces."""
        return [c.line for c in self._call_log]

    def set_output(self, prefix: str, stdout: str = "", stderr: str = "") -> None:
        """Make commands starting with ``prefix`` succeed with this output."""
        self._responses[prefix] = ProcessResult(stdout=stdout, stderr=stderr)

    def set_failure(self, prefix: str, returncode: int = 1, stderr: str = "") -> None:
        """Make commands starting with ``prefix`` exit non-zero."""
        self._responses[prefix] = ProcessResult(returncode=returncode, stderr=stderr)

    def set_missing(self, prefix: str) -> None:
        """Make commands starting with ``prefix`` fail to spawn."""
        self._responses[prefix] = ProcessSpawnError(f"No such file or directory: {prefix}")

    def set_timeout(self, prefix: str) -> None:
        """Make commands starting with ``prefix`` time out."""
        self._responses[prefix] = ProcessTimeoutError(prefix.split(), 0)

    def run(
        self,
        cmd: Sequence[str],
        *,
        env: Mapping[str, str] | None = None,
        cwd: str | None = None,
        timeout: float | None = None,
    ) -> ProcessResult:
        call = ProcessCall(cmd=list(cmd), env=dict(env or {}), cwd=cwd, timeout=timeout)
        self._call_log.append(call)

        response = self._match(call.line)
        if isinstance(response, Exception):
            raise response
        if response is None:
            return ProcessResult(cmd=call.cmd, stdout=self._default_stdout)
        return response.model_copy(update={"cmd": call.cmd})

    def _match(self, line: str) -> ProcessResult | Exception | None:
        best = None
        for prefix in self._responses:
            if line.startswith(prefix) and (best is None or len(prefix) > len(best)):
                best = prefix
        return self._responses[best] if best is not None else None

    def reset(self) -> None:
        """Clear call log and scripted responses."""
        self._call_log.clear()
        self._responses.clear()


class MockFetcher(Fetcher):
    """In-memory fetcher: URL → body text. Unknown URLs return 404."""

    def __init__(self, documents: Mapping[str, str] | None = None):
        self._documents: dict[str, str] = dict(documents or {})
        self._unreachable: set[str] = set()
        self.requested: list[str] = []

    def add(self, url: str, text: str) -> None:
        self._documents[url] = text

    def set_unreachable(self, url: str) -> None:
        self._unreachable.add(url)

    def fetch(self, url: str) -> FetchResponse:
        self.requested.append(url)
        if url in self._unreachable:
            raise FetchError(f"Network error fetching {url}: connection refused")
        if url in self._documents:
            return FetchResponse(url=url, status=200, text=self._documents[url])
        return FetchResponse(url=url, status=404, text="")
