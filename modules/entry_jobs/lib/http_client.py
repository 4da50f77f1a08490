# entry_jobs/http_client.py
from __future__ import annotations

import logging
import random
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any
from urllib.parse import urlsplit

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

LOG = logging.getLogger(__name__)

USER_AGENTS = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/124.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/123.0.0.0 Safari/537.36",
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/122.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:125.0) Gecko/20100101 Firefox/125.0",
)

BROWSER_HEADERS = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/avif,image/webp,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
    "Accept-Encoding": "gzip, deflate",
    "Cache-Control": "no-cache",
    "Pragma": "no-cache",
    "Upgrade-Insecure-Requests": "1",
}


@dataclass(frozen=True)
class PageResponse:
    status: int
    text: str
    url: str


def validate_url(url: str) -> str:
    """Raise ValueError for anything that is not an absolute http(s) URL."""
    parts = urlsplit(url or "")
    if parts.scheme not in ("http", "https") or not parts.netloc:
        raise ValueError(f"Malformed URL: {url!r}")
    return url


class HttpClient:
    """
    Static fetch tier: one requests.Session with browser-like headers.

    Connection-level hiccups are retried by urllib3; HTTP status handling
    (429/403 and friends) is left to the caller so the retry controller owns
    backoff decisions.
    """

    def __init__(
        self,
        timeout: float = 20.0,
        user_agents: tuple[str, ...] = USER_AGENTS,
        rng: random.Random | None = None,
    ):
        self.timeout = float(timeout)
        self.user_agents = user_agents
        self._rng = rng or random.Random()
        self.session = requests.Session()
        self.session.headers.update(BROWSER_HEADERS)

        retry = Retry(
            total=2,
            connect=2,
            read=0,
            status=0,
            backoff_factor=0.5,
            allowed_methods=frozenset(["GET", "HEAD"]),
            raise_on_status=False,
        )
        adapter = HTTPAdapter(max_retries=retry, pool_connections=10, pool_maxsize=20)
        self.session.mount("http://", adapter)
        self.session.mount("https://", adapter)

    def _headers(self, extra: Mapping[str, str] | None) -> dict[str, str]:
        headers = {"User-Agent": self._rng.choice(self.user_agents)}
        if extra:
            headers.update(extra)
        return headers

    def get_page(
        self,
        url: str,
        *,
        headers: Mapping[str, str] | None = None,
        timeout: float | None = None,
        **kwargs: Any,
    ) -> PageResponse:
        """
        GET and return status + decoded body. Non-2xx statuses are returned,
        not raised. requests' Timeout/ConnectionError propagate.
        """
        validate_url(url)
        resp = self.session.get(url, headers=self._headers(headers), timeout=timeout or self.timeout, **kwargs)
        if not resp.encoding and resp.apparent_encoding:
            resp.encoding = resp.apparent_encoding
        return PageResponse(status=resp.status_code, text=resp.text or "", url=resp.url or url)

    def head_status(self, url: str, *, timeout: float | None = None) -> int:
        """HEAD with redirects followed; falls back to GET when HEAD is refused."""
        validate_url(url)
        resp = self.session.head(url, headers=self._headers(None), timeout=timeout or self.timeout, allow_redirects=True)
        if resp.status_code in (405, 501):
            resp = self.session.get(
                url, headers=self._headers(None), timeout=timeout or self.timeout, allow_redirects=True, stream=True
            )
            resp.close()
        return resp.status_code

    def close(self) -> None:
        try:
            self.session.close()
        except Exception:
            LOG.debug("HttpClient.close() swallow", exc_info=True)
