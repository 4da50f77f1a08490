# tests/conftest.py
import os
import random
import tempfile

import pytest
from freezegun import freeze_time

from modules.entry_jobs.lib import config as ej_config
from modules.entry_jobs.lib.retry import RetryController
from tests.fakes import FakeFetchTier, SleepRecorder


# ---------------------------------------------------------------------
# Live tests are opt-in: use --live or RUN_LIVE_TESTS=1
# ---------------------------------------------------------------------
def pytest_addoption(parser: pytest.Parser) -> None:
    parser.addoption(
        "--live",
        action="store_true",
        default=False,
        help="Run tests marked as 'live' (real job portals over the network).",
    )


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line(
        "markers",
        "live: marks tests that hit real job portals (skipped by default).",
    )


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    run_live = config.getoption("--live") or os.getenv("RUN_LIVE_TESTS") == "1"
    if run_live:
        return
    skip_live = pytest.mark.skip(reason="live tests disabled (use --live or RUN_LIVE_TESTS=1)")
    for item in items:
        if "live" in item.keywords:
            item.add_marker(skip_live)


# ---------------------------------------------------------------------
# Test-wide env defaults (autouse, function-scoped)
# ---------------------------------------------------------------------
@pytest.fixture(autouse=True)
def _env_defaults(monkeypatch):
    # Write logs to a throwaway dir so real logs stay clean (per test)
    tmp_logs = tempfile.mkdtemp(prefix="ej-pytest-logs-")
    monkeypatch.setenv("LOG_DIR", tmp_logs)
    monkeypatch.setenv("ACTIVITY_LOG_PREFIX", "activity-test")
    monkeypatch.setenv("ERROR_LOG_PREFIX", "error-test")
    monkeypatch.delenv("CONFIG_PATH", raising=False)
    yield


@pytest.fixture
def frozen_utc():
    with freeze_time("2025-01-01T00:00:00Z"):
        yield


# ---------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------
@pytest.fixture
def sleep_recorder() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def retry_controller(sleep_recorder) -> RetryController:
    return RetryController(base_ms=3000, jitter_ms=2000, rng=random.Random(7), sleep=sleep_recorder)


@pytest.fixture
def fake_tier_factory():
    return FakeFetchTier


# ---------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------
@pytest.fixture
def stub_settings():
    """Settings builder over stub sources; no network, no browser."""

    def _build(sources, **kw):
        return ej_config.Settings.from_env_and_kwargs({
            "sources": sources,
            "rendered_tier": False,
            "max_workers": 2,
            "retry_base_ms": 0,
            "retry_jitter_ms": 0,
            **kw,
        })

    return _build
