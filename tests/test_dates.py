# tests/test_dates.py
from datetime import datetime, timedelta, timezone

import pytest

from modules.entry_jobs.lib import dates
from modules.entry_jobs.lib.models import JobRecord

NOW = datetime(2025, 3, 15, 12, 0, tzinfo=timezone.utc)


def _rec(posted_text: str = "") -> JobRecord:
    return JobRecord(title="t", company="c", apply_url="https://x.example/1", source="s", posted_text=posted_text)


@pytest.mark.parametrize(
    "text, expected",
    [
        ("30 minutes ago", NOW - timedelta(minutes=30)),
        ("Posted 5 hours ago", NOW - timedelta(hours=5)),
        ("2 days ago", NOW - timedelta(days=2)),
        ("30+ days ago", NOW - timedelta(days=30)),
        ("3 weeks ago", NOW - timedelta(weeks=3)),
        ("1 month ago", NOW - timedelta(days=30)),
        ("an hour ago", NOW - timedelta(hours=1)),
        ("a day ago", NOW - timedelta(days=1)),
        ("Just posted", NOW),
        ("Posted today", NOW),
        ("Yesterday", NOW - timedelta(days=1)),
    ],
)
def test_relative_patterns(text, expected):
    assert dates.parse_posted(text, NOW) == expected


def test_absolute_dates_parse_and_never_exceed_now():
    assert dates.parse_posted("Posted on 2025-03-10", NOW) == datetime(2025, 3, 10, tzinfo=timezone.utc)
    assert dates.parse_posted("05/03/2025", NOW) == datetime(2025, 3, 5, tzinfo=timezone.utc)
    assert dates.parse_posted("12 Mar 2025", NOW) == datetime(2025, 3, 12, tzinfo=timezone.utc)
    assert dates.parse_posted("March 1, 2025", NOW) == datetime(2025, 3, 1, tzinfo=timezone.utc)
    # A date later than ingestion time is clamped to ingestion time.
    assert dates.parse_posted("2025-12-31", NOW) == NOW


def test_larger_offsets_give_earlier_timestamps():
    texts = ["1 hour ago", "1 day ago", "2 days ago", "1 week ago", "2 months ago"]
    stamps = [dates.parse_posted(t, NOW) for t in texts]
    assert all(s <= NOW for s in stamps)
    assert stamps == sorted(stamps, reverse=True)
    assert len(set(stamps)) == len(stamps)


def test_unparseable_text_returns_none():
    assert dates.parse_posted("Be an early applicant", NOW) is None
    assert dates.parse_posted("", NOW) is None
    assert dates.parse_posted(None, NOW) is None


@pytest.mark.parametrize("text", ["900000 days ago", "99999999999 hours ago", "50000 months ago"])
def test_out_of_range_offsets_return_none(text):
    assert dates.parse_posted(text, NOW) is None


def test_out_of_range_offset_falls_back_to_default_recency():
    rec = dates.normalize_record(_rec("900000 days ago"), NOW, default_recency_days=3)
    assert rec.posted_at == NOW - timedelta(days=3)


def test_normalize_record_falls_back_to_default_recency():
    rec = dates.normalize_record(_rec("Hiring actively"), NOW, default_recency_days=3)
    assert rec.posted_at == NOW - timedelta(days=3)


def test_normalize_record_keeps_adapter_timestamp():
    rec = _rec("2 days ago")
    rec.posted_at = NOW - timedelta(hours=1)
    dates.normalize_record(rec, NOW, default_recency_days=3)
    assert rec.posted_at == NOW - timedelta(hours=1)


def test_is_fresh_window_and_missing_timestamp():
    rec = _rec()
    assert dates.is_fresh(rec, NOW, 7)  # no timestamp -> kept

    rec.posted_at = NOW - timedelta(days=6)
    assert dates.is_fresh(rec, NOW, 7)

    rec.posted_at = NOW - timedelta(days=8)
    assert not dates.is_fresh(rec, NOW, 7)
