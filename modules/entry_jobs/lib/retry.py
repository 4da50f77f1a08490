from __future__ import annotations

import logging
import random
import threading
from collections.abc import Callable
from dataclasses import dataclass, field

from tenacity import RetryCallState, Retrying, retry_if_result, stop_after_attempt
from tenacity.wait import wait_combine, wait_exponential

from .errors import CycleCancelled
from .fetcher import FetchResult

log = logging.getLogger(__name__)


@dataclass
class RetryReport:
    result: FetchResult
    attempts: int
    delays_s: list[float] = field(default_factory=list)

    @property
    def exhausted(self) -> bool:
        return self.result.outcome.retryable


class RetryController:
    """
    Exponential backoff around a fetch call, driven by tenacity.

    delay(n) = base_ms * 2**(n - 1) + uniform(0, jitter_ms) for the n-th attempt
    that failed, slept only between attempts. Non-retryable outcomes return
    immediately; exceptions from the call (malformed URL) propagate untouched.

    Sleeping goes through the cancel event so a cancelled cycle wakes the
    worker at once; CycleCancelled is raised in that case.
    """

    def __init__(
        self,
        *,
        base_ms: int = 3000,
        jitter_ms: int = 2000,
        cancel_event: threading.Event | None = None,
        rng: random.Random | None = None,
        sleep: Callable[[float], None] | None = None,
    ) -> None:
        self.base_ms = int(base_ms)
        self.jitter_ms = int(jitter_ms)
        self.cancel_event = cancel_event or threading.Event()
        self._rng = rng or random.Random()
        self._sleep = sleep

    def _jitter(self, retry_state: RetryCallState | None = None) -> float:
        return self._rng.uniform(0, self.jitter_ms) / 1000.0 if self.jitter_ms else 0.0

    def backoff(self) -> wait_combine:
        """tenacity wait strategy: exponential on base_ms plus seeded jitter."""
        return wait_combine(wait_exponential(multiplier=self.base_ms / 1000.0, exp_base=2), self._jitter)

    def wait(self, seconds: float) -> None:
        if seconds <= 0:
            self.check_cancelled()
            return
        if self._sleep is not None:
            self._sleep(seconds)
            self.check_cancelled()
        elif self.cancel_event.wait(seconds):
            raise CycleCancelled("cancelled while waiting")

    def pause(self, base_ms: int) -> float:
        """Politeness delay between pages: base_ms plus jitter. Returns seconds slept."""
        seconds = max(0, base_ms) / 1000.0 + self._jitter()
        self.wait(seconds)
        return seconds

    def check_cancelled(self, retry_state: RetryCallState | None = None) -> None:
        if self.cancel_event.is_set():
            raise CycleCancelled("cycle cancelled")

    def run(self, call: Callable[[], FetchResult], max_retries: int, *, label: str = "") -> RetryReport:
        attempts = max(1, int(max_retries))
        delays: list[float] = []
        made = [0]

        def _attempt() -> FetchResult:
            made[0] += 1
            return call()

        def _sleep(seconds: float) -> None:
            delays.append(seconds)
            self.wait(seconds)

        def _log_backoff(retry_state: RetryCallState) -> None:
            result = retry_state.outcome.result()
            log.info(
                "%s attempt %d/%d -> %s; backing off %.2fs",
                label or result.url,
                retry_state.attempt_number,
                attempts,
                result.outcome.value,
                retry_state.next_action.sleep,
            )

        def _give_up(retry_state: RetryCallState) -> FetchResult:
            result = retry_state.outcome.result()
            log.warning("%s gave up after %d attempts (%s)", label or result.url, attempts, result.outcome.value)
            return result

        retrying = Retrying(
            retry=retry_if_result(lambda r: r.outcome.retryable),
            stop=stop_after_attempt(attempts),
            wait=self.backoff(),
            sleep=_sleep,
            before=self.check_cancelled,
            before_sleep=_log_backoff,
            retry_error_callback=_give_up,
        )
        result = retrying(_attempt)
        return RetryReport(result=result, attempts=made[0], delays_s=delays)
