"""
HTTP fetcher — plain ``urllib.request`` GETs for formula and task documents.
"""

from __future__ import annotations

import logging
import urllib.error
import urllib.request

from initbox import __version__
from initbox.adapters.base import Fetcher, FetchError, FetchResponse

logger = logging.getLogger(__name__)


class UrllibFetcher(Fetcher):
    """Fetch text documents over HTTP(S).

    Non-2xx responses are returned with their status; only transport
    failures (DNS, refused connection, timeout) raise ``FetchError``.
    """

    def __init__(self, timeout: float = 15):
        self._timeout = timeout

    def fetch(self, url: str) -> FetchResponse:
        req = urllib.request.Request(
            url,
            headers={
                "Accept": "text/plain, application/x-yaml, application/json",
                "User-Agent": f"initbox/{__version__}",
            },
        )
        logger.debug("GET %s", url)
        try:
            with urllib.request.urlopen(req, timeout=self._timeout) as resp:
                body = resp.read().decode("utf-8", errors="replace")
                return FetchResponse(url=url, status=resp.status, text=body)
        except urllib.error.HTTPError as e:
            return FetchResponse(url=url, status=e.code, text="")
        except (urllib.error.URLError, OSError) as e:
            raise FetchError(f"Network error fetching {url}: {e}") from e
