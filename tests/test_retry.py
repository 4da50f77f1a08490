# tests/test_retry.py
import random
import threading

import pytest

from modules.entry_jobs.lib.config import SourceConfig
from modules.entry_jobs.lib.errors import CycleCancelled, SourceFailure
from modules.entry_jobs.lib.fetcher import FetchOutcome, FetchResult
from modules.entry_jobs.lib.retry import RetryController
from modules.entry_jobs.lib.scrapers.indeed import IndeedAdapter
from tests.fakes import FakeFetchTier, rate_limited


def test_always_429_makes_exactly_max_retries_attempts(retry_controller, sleep_recorder):
    calls = []

    def _call():
        calls.append(1)
        return rate_limited("https://x.example/search")

    report = retry_controller.run(_call, 3, label="x")

    assert len(calls) == 3
    assert report.attempts == 3
    assert report.exhausted
    assert report.result.outcome is FetchOutcome.RATE_LIMITED
    # sleeps only between attempts, each longer than the last
    assert sleep_recorder.calls == report.delays_s
    assert len(report.delays_s) == 2
    assert report.delays_s[0] < report.delays_s[1]


def test_backoff_doubles_from_base_with_bounded_jitter():
    ctl = RetryController(base_ms=3000, jitter_ms=2000, rng=random.Random(1), sleep=lambda s: None)

    report = ctl.run(lambda: rate_limited("https://x.example/a"), 5)

    assert report.attempts == 5
    assert len(report.delays_s) == 4
    for n, d in enumerate(report.delays_s):
        low = 3000 * 2**n / 1000
        assert low <= d <= low + 2.0


def test_single_attempt_never_sleeps(retry_controller, sleep_recorder):
    report = retry_controller.run(lambda: rate_limited("https://x.example/a"), 1)
    assert report.attempts == 1
    assert report.exhausted
    assert sleep_recorder.calls == []


def test_cancel_before_first_attempt_makes_no_call():
    cancel = threading.Event()
    cancel.set()
    calls = []
    ctl = RetryController(base_ms=10, jitter_ms=0, cancel_event=cancel, sleep=lambda s: None)

    with pytest.raises(CycleCancelled):
        ctl.run(lambda: calls.append(1), 3)
    assert calls == []


def test_non_retryable_outcome_returns_immediately(retry_controller, sleep_recorder):
    calls = []

    def _call():
        calls.append(1)
        return FetchResult(FetchOutcome.NOT_FOUND, "https://x.example/gone", status=404)

    report = retry_controller.run(_call, 5)

    assert len(calls) == 1
    assert report.attempts == 1
    assert not report.exhausted
    assert sleep_recorder.calls == []


def test_recovers_after_transient_failure(retry_controller):
    results = iter([
        rate_limited("https://x.example/a"),
        FetchResult(FetchOutcome.SUCCESS, "https://x.example/a", "<html></html>", status=200),
    ])
    report = retry_controller.run(lambda: next(results), 3)
    assert report.result.ok
    assert report.attempts == 2


def test_malformed_url_error_propagates(retry_controller):
    def _call():
        raise ValueError("Malformed URL: 'nope'")

    with pytest.raises(ValueError):
        retry_controller.run(_call, 3)


def test_cancel_event_interrupts_backoff():
    cancel = threading.Event()

    def _sleep(_seconds):
        cancel.set()

    ctl = RetryController(base_ms=10, jitter_ms=0, cancel_event=cancel, sleep=_sleep)
    with pytest.raises(CycleCancelled):
        ctl.run(lambda: rate_limited("https://x.example/a"), 3)


def test_source_always_429_becomes_source_failure(retry_controller):
    cfg = SourceConfig(kind="indeed", max_retries=3, max_pages=2)
    adapter = IndeedAdapter()
    tier = FakeFetchTier(default=rate_limited)

    with pytest.raises(SourceFailure) as excinfo:
        adapter.scrape(cfg, tier, retry_controller)

    assert len(tier.calls) == 3
    assert excinfo.value.source == "indeed"
    assert "rate_limited" in excinfo.value.reason
