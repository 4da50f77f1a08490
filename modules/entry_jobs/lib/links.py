"""
Apply-link verification.

Portals that reject automated probes outright are trusted without a
request. Everything else gets a HEAD (GET fallback) with a short retry on
403/429. Verification only sets JobRecord.link_verified; it never drops a
record.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from urllib.parse import urlsplit

import requests

from .http_client import HttpClient
from .models import JobRecord

log = logging.getLogger(__name__)

TRUSTED_DOMAINS = ("naukri.com", "linkedin.com", "glassdoor.co.in", "glassdoor.com", "shine.com", "wellfound.com")
RETRY_STATUSES = (403, 429)


def is_trusted(url: str) -> bool:
    host = (urlsplit(url).hostname or "").lower()
    return any(host == d or host.endswith("." + d) for d in TRUSTED_DOMAINS)


class LinkVerifier:
    def __init__(
        self,
        http: HttpClient,
        *,
        timeout: float = 5.0,
        attempts: int = 2,
        retry_delay_s: float = 1.0,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.http = http
        self.timeout = timeout
        self.attempts = max(1, attempts)
        self.retry_delay_s = retry_delay_s
        self._sleep = sleep

    def check(self, url: str) -> bool:
        if is_trusted(url):
            return True
        for attempt in range(self.attempts):
            try:
                status = self.http.head_status(url, timeout=self.timeout)
            except (requests.RequestException, ValueError) as e:
                log.debug("link check failed for %s: %r", url, e)
                return False
            if status < 400:
                return True
            if status not in RETRY_STATUSES or attempt + 1 >= self.attempts:
                return False
            self._sleep(self.retry_delay_s * (attempt + 1))
        return False

    def verify(self, record: JobRecord) -> JobRecord:
        record.link_verified = self.check(record.apply_url)
        return record
