# entry_jobs/fetcher.py
"""
Tiered page fetch: static HTTP first, headless browser as fallback.

Outcomes are reported as FetchOutcome values rather than exceptions so the
retry controller and adapters can decide what to do next. The only exception
that escapes `FetchTier.fetch` is ValueError for a malformed URL.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum

import requests
from bs4 import BeautifulSoup
from playwright.sync_api import Error as PlaywrightError

from .browser import BrowserSession, RenderTimeout
from .http_client import HttpClient, PageResponse

log = logging.getLogger(__name__)

STATIC = "static"
RENDERED = "rendered"

CHALLENGE_TITLE_MARKERS = (
    "just a moment",
    "security challenge",
    "attention required",
    "cloudflare",
    "access denied",
    "are you a robot",
)
CHALLENGE_TEXT_MARKERS = (
    "verify you are human",
    "pardon our interruption",
    "checking your browser",
    "enable javascript and cookies to continue",
    "unusual traffic",
)
NO_RESULTS_MARKERS = (
    "no matching jobs found",
    "no result found",
    "did not match any jobs",
    "no jobs found",
    "no results found",
)


class FetchOutcome(str, Enum):
    SUCCESS = "success"
    RATE_LIMITED = "rate_limited"  # HTTP 429 / explicit rate-limit page
    BLOCKED = "blocked"  # anti-bot challenge or HTTP 403
    TIMEOUT = "timeout"  # timeout, connection failure or 5xx
    PARSE_EMPTY = "parse_empty"  # page loaded but held no result cards
    NOT_FOUND = "not_found"  # 404 / 410

    @property
    def retryable(self) -> bool:
        return self in (FetchOutcome.RATE_LIMITED, FetchOutcome.BLOCKED, FetchOutcome.TIMEOUT)


@dataclass(frozen=True)
class FetchResult:
    outcome: FetchOutcome
    url: str
    html: str = ""
    tier: str = STATIC
    status: int | None = None
    error: str | None = None
    no_results: bool = False

    @property
    def ok(self) -> bool:
        return self.outcome is FetchOutcome.SUCCESS


def detect_challenge(html: str, status: int | None = None) -> bool:
    """True when the page looks like an anti-bot interstitial."""
    if status in (403, 429):
        return True
    if not html:
        return False
    soup = BeautifulSoup(html, "html.parser")
    title = (soup.title.get_text(" ", strip=True) if soup.title else "").lower()
    if any(m in title for m in CHALLENGE_TITLE_MARKERS):
        return True
    head = soup.get_text(" ", strip=True)[:5000].lower()
    return any(m in head for m in CHALLENGE_TEXT_MARKERS)


def has_no_results_marker(html: str) -> bool:
    lowered = (html or "").lower()
    return any(m in lowered for m in NO_RESULTS_MARKERS)


def count_matches(html: str, selectors: Sequence[str]) -> int:
    """Matches for the first selector that yields any (0 when none do)."""
    if not html or not selectors:
        return 0
    soup = BeautifulSoup(html, "html.parser")
    for sel in selectors:
        found = soup.select(sel)
        if found:
            return len(found)
    return 0


def classify_page(page: PageResponse, selectors: Sequence[str], tier: str) -> FetchResult:
    """Map a raw response onto a FetchOutcome."""
    status = page.status
    if status in (404, 410):
        return FetchResult(FetchOutcome.NOT_FOUND, page.url, page.text, tier, status, f"HTTP {status}")
    if status == 429:
        return FetchResult(FetchOutcome.RATE_LIMITED, page.url, page.text, tier, status, "HTTP 429")
    if status == 403 or detect_challenge(page.text, status):
        return FetchResult(FetchOutcome.BLOCKED, page.url, page.text, tier, status, "anti-bot challenge")
    if status >= 500:
        return FetchResult(FetchOutcome.TIMEOUT, page.url, page.text, tier, status, f"HTTP {status}")
    if status >= 400:
        return FetchResult(FetchOutcome.NOT_FOUND, page.url, page.text, tier, status, f"HTTP {status}")
    if not page.text.strip():
        return FetchResult(FetchOutcome.PARSE_EMPTY, page.url, page.text, tier, status, "empty body")
    if selectors and count_matches(page.text, selectors) == 0:
        no_results = has_no_results_marker(page.text)
        return FetchResult(
            FetchOutcome.PARSE_EMPTY,
            page.url,
            page.text,
            tier,
            status,
            "no results" if no_results else "no selector matches",
            no_results=no_results,
        )
    return FetchResult(FetchOutcome.SUCCESS, page.url, page.text, tier, status)


class FetchTier:
    """
    Owned by a single worker: one HttpClient and (optionally) one BrowserSession.

    Escalates to the rendered tier when the static response is blocked,
    rate limited, empty, or has zero selector matches (unless the page says
    outright that there are no results).
    """

    def __init__(self, http: HttpClient, browser: BrowserSession | None = None) -> None:
        self.http = http
        self.browser = browser

    def fetch(self, url: str, selectors: Sequence[str] = (), *, allow_render: bool = True) -> FetchResult:
        static = self._fetch_static(url, selectors)
        if not self._should_escalate(static) or not allow_render or self.browser is None:
            return static

        log.debug("escalating to rendered tier for %s (%s)", url, static.outcome.value)
        return self._fetch_rendered(url, selectors)

    def _should_escalate(self, res: FetchResult) -> bool:
        if res.outcome in (FetchOutcome.BLOCKED, FetchOutcome.RATE_LIMITED):
            return True
        return res.outcome is FetchOutcome.PARSE_EMPTY and not res.no_results

    def _fetch_static(self, url: str, selectors: Sequence[str]) -> FetchResult:
        try:
            page = self.http.get_page(url)
        except requests.Timeout as e:
            return FetchResult(FetchOutcome.TIMEOUT, url, tier=STATIC, error=f"timeout: {e}")
        except requests.RequestException as e:
            return FetchResult(FetchOutcome.TIMEOUT, url, tier=STATIC, error=repr(e))
        return classify_page(page, selectors, STATIC)

    def _fetch_rendered(self, url: str, selectors: Sequence[str]) -> FetchResult:
        try:
            page = self.browser.render(url)
        except RenderTimeout as e:
            return FetchResult(FetchOutcome.TIMEOUT, url, tier=RENDERED, error=str(e))
        except PlaywrightError as e:
            self.browser.restart()
            return FetchResult(FetchOutcome.TIMEOUT, url, tier=RENDERED, error=repr(e))
        return classify_page(page, selectors, RENDERED)

    def close(self) -> None:
        self.http.close()
        if self.browser is not None:
            self.browser.close()
