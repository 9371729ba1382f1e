"""Adapters — bindings to external processes and the network.

Public re-exports for convenient access.
"""

from initbox.adapters.base import (
    Fetcher,
    FetchError,
    FetchResponse,
    ProcessResult,
    ProcessRunner,
    ProcessSpawnError,
    ProcessTimeoutError,
)
from initbox.adapters.mock import MockFetcher, MockProcessRunner

__all__ = [
    "FetchError",
    "FetchResponse",
    "Fetcher",
    "MockFetcher",
    "MockProcessRunner",
    "ProcessResult",
    "ProcessRunner",
    "ProcessSpawnError",
    "ProcessTimeoutError",
]
