# entry_jobs/browser.py
"""
Rendered fetch tier: one headless Chromium per worker.

Playwright's sync objects are bound to the thread that created them, so a
BrowserSession must only be used by the worker that owns it. The browser is
launched lazily on the first render and relaunched after a failing fetch.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import TimeoutError as PlaywrightTimeout
from playwright.sync_api import sync_playwright

from .http_client import USER_AGENTS, PageResponse, validate_url

log = logging.getLogger(__name__)

SCROLL_STEPS = 3
SCROLL_PAUSE_S = 1.0


class RenderTimeout(Exception):
    """Navigation did not finish inside the configured timeout."""


class BrowserSession:
    def __init__(
        self,
        *,
        name: str = "worker",
        headless: bool = True,
        timeout_ms: int = 30000,
        settle_ms: int = 5000,
        user_agent: str = USER_AGENTS[0],
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.name = name
        self.headless = headless
        self.timeout_ms = int(timeout_ms)
        self.settle_ms = int(settle_ms)
        self.user_agent = user_agent
        self._sleep = sleep
        self._pw = None
        self._browser = None
        self._context = None
        self._owner: int | None = None
        self.launches = 0

    # ---- lifecycle ----
    @property
    def started(self) -> bool:
        return self._browser is not None

    def _ensure_started(self) -> None:
        if self._owner is not None and self._owner != threading.get_ident():
            raise RuntimeError(f"BrowserSession {self.name!r} used from a thread that does not own it")
        if self._browser is not None:
            return
        self._pw = sync_playwright().start()
        self._browser = self._pw.chromium.launch(
            headless=self.headless,
            args=["--disable-blink-features=AutomationControlled", "--disable-dev-shm-usage", "--no-sandbox"],
        )
        self._context = self._browser.new_context(
            user_agent=self.user_agent,
            viewport={"width": 1920, "height": 1080},
            locale="en-US",
        )
        self._owner = threading.get_ident()
        self.launches += 1
        log.info("browser[%s] launched (launch #%d)", self.name, self.launches)

    def close(self) -> None:
        for closer in (self._context, self._browser):
            if closer is None:
                continue
            try:
                closer.close()
            except PlaywrightError:
                log.debug("browser[%s] close failed", self.name, exc_info=True)
        if self._pw is not None:
            try:
                self._pw.stop()
            except PlaywrightError:
                log.debug("browser[%s] playwright stop failed", self.name, exc_info=True)
        self._pw = self._browser = self._context = None
        self._owner = None

    def restart(self) -> None:
        """Drop the current browser; the next render relaunches it."""
        log.info("browser[%s] restarting", self.name)
        self.close()

    # ---- fetch ----
    def render(self, url: str) -> PageResponse:
        """
        Navigate, scroll to trigger lazy content, wait the settle period and
        return the rendered DOM. Raises RenderTimeout on navigation timeout;
        other Playwright errors propagate as PlaywrightError.
        """
        validate_url(url)
        self._ensure_started()
        page = self._context.new_page()
        try:
            try:
                resp = page.goto(url, wait_until="domcontentloaded", timeout=self.timeout_ms)
            except PlaywrightTimeout as e:
                raise RenderTimeout(f"navigation timed out after {self.timeout_ms}ms: {url}") from e

            for _ in range(SCROLL_STEPS):
                page.evaluate("window.scrollBy(0, document.body.scrollHeight / 3)")
                self._sleep(SCROLL_PAUSE_S)
            if self.settle_ms > 0:
                page.wait_for_timeout(self.settle_ms)

            status = resp.status if resp is not None else 200
            return PageResponse(status=status, text=page.content(), url=page.url or url)
        finally:
            try:
                page.close()
            except PlaywrightError:
                log.debug("browser[%s] page close failed", self.name, exc_info=True)

    def __repr__(self) -> str:
        return f"BrowserSession(name={self.name!r}, started={self.started}, launches={self.launches})"
