# tests/test_scheduler.py
import json
import time
from datetime import datetime, timedelta, timezone

import pytest
import pytz

from modules.entry_jobs.main import build_service
from service import scheduler as sched
from tests.fakes import stub_item


def _next_times(trigger, tzinfo, count=3, start=None):
    """Fire times strictly after `start`, seeded as if the previous run happened then."""
    prev = now = start or datetime.now(tz=tzinfo)
    out = []
    for _ in range(count):
        nxt = trigger.get_next_fire_time(prev, now)
        if nxt is None:
            break
        out.append(nxt)
        prev = nxt
        now = nxt + timedelta(microseconds=1)
    return out


def _wait_for(predicate, timeout=5.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.02)
    return False


@pytest.fixture
def service(stub_settings):
    settings = stub_settings([{"kind": "stub", "params": {"items": [stub_item(1), stub_item(2)]}}])
    return build_service(settings)


@pytest.fixture
def write_config(tmp_path):
    def _write(refresh):
        path = tmp_path / "service.json"
        path.write_text(json.dumps({"timezone": "UTC", "refresh": refresh, "aggregator": {}}), encoding="utf-8")
        return str(path)

    return _write


def test_build_trigger_interval_minutes():
    trig = sched._build_trigger({"interval": {"minutes": 5}}, pytz.UTC)
    assert trig.interval.total_seconds() == 300

    ts = datetime(2099, 1, 1, 0, 0, 0, tzinfo=timezone.utc)
    times = _next_times(trig, timezone.utc, start=ts)
    assert times == [ts + timedelta(minutes=5), ts + timedelta(minutes=10), ts + timedelta(minutes=15)]


def test_build_trigger_combines_fields_and_jitter():
    trig = sched._build_trigger({"interval": {"hours": 1, "minutes": 30}, "jitter": 20}, pytz.UTC)
    assert trig.interval == timedelta(hours=1, minutes=30)
    assert trig.jitter == 20


@pytest.mark.parametrize(
    "refresh",
    [
        {"interval": {}},
        {"interval": {"hours": 0, "minutes": 0}},
        {"interval": {"hours": -2}},
        {"interval": {"hours": "soon"}},
        {"interval": {"fortnights": 1}},
        {"interval": "hourly"},
    ],
)
def test_build_trigger_rejects_bad_interval(refresh):
    with pytest.raises(ValueError):
        sched._build_trigger(refresh, pytz.UTC)


def test_invalid_timezone_falls_back_to_utc():
    assert sched._resolve_timezone({"timezone": "Mars/Olympus"}) is pytz.UTC
    assert str(sched._resolve_timezone({"timezone": "Asia/Kolkata"})) == "Asia/Kolkata"


def test_start_without_run_at_start_waits_for_first_tick(service, write_config):
    ctl = sched.start(write_config({"interval": {"hours": 1}, "run_at_start": False}), service=service)
    try:
        assert list(ctl.get_job_ids()) == [sched.REFRESH_JOB_ID]
        nxt = ctl.next_run_time()
        assert nxt is not None
        assert nxt - datetime.now(pytz.UTC) > timedelta(minutes=59)
        assert not ctl.cache.get_current_listings().has_run
    finally:
        ctl.stop()
    assert ctl.join(1)


def test_start_with_run_at_start_publishes_promptly(service, write_config):
    ctl = sched.start(write_config({"interval": {"hours": 1}, "run_at_start": True}), service=service)
    try:
        assert _wait_for(lambda: ctl.cache.get_current_listings().has_run)
        assert len(ctl.cache.get_current_listings().records) == 2
    finally:
        ctl.stop()
