"""
Relative / absolute posted-date text -> aware UTC datetime.

Patterns are tried in a fixed order and the first match wins. Offsets are
subtracted from the ingestion time, so a normalized timestamp never lies in
the future. Unparseable text falls back to the source's default recency.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from datetime import datetime, timedelta, timezone

from .models import JobRecord

_Rule = tuple[re.Pattern[str], Callable[[re.Match[str], datetime], datetime]]


def _ago(unit: str) -> Callable[[re.Match[str], datetime], datetime]:
    def _apply(m: re.Match[str], now: datetime) -> datetime:
        n = int(m.group(1))
        if unit == "minutes":
            return now - timedelta(minutes=n)
        if unit == "hours":
            return now - timedelta(hours=n)
        if unit == "days":
            return now - timedelta(days=n)
        if unit == "weeks":
            return now - timedelta(weeks=n)
        return now - timedelta(days=30 * n)

    return _apply


def _fixed(delta: timedelta) -> Callable[[re.Match[str], datetime], datetime]:
    return lambda _m, now: now - delta


_RELATIVE_RULES: list[_Rule] = [
    (re.compile(r"(\d+)\s*\+?\s*(?:minutes?|mins?)\s+ago"), _ago("minutes")),
    (re.compile(r"(\d+)\s*\+?\s*(?:hours?|hrs?|h)\s+ago"), _ago("hours")),
    (re.compile(r"(\d+)\s*\+?\s*(?:days?|d)\s+ago"), _ago("days")),
    (re.compile(r"(\d+)\s*\+?\s*(?:weeks?|wks?|w)\s+ago"), _ago("weeks")),
    (re.compile(r"(\d+)\s*\+?\s*(?:months?|mos?)\s+ago"), _ago("months")),
    (re.compile(r"\ban?\s+(?:hour)\s+ago"), _fixed(timedelta(hours=1))),
    (re.compile(r"\ba\s+day\s+ago"), _fixed(timedelta(days=1))),
    (re.compile(r"\ba\s+week\s+ago"), _fixed(timedelta(weeks=1))),
    (re.compile(r"\ba\s+month\s+ago"), _fixed(timedelta(days=30))),
    (re.compile(r"\b(?:just\s+(?:now|posted)|few\s+(?:hours|minutes)\s+ago)\b"), _fixed(timedelta(0))),
    (re.compile(r"\btoday\b"), _fixed(timedelta(0))),
    (re.compile(r"\byesterday\b"), _fixed(timedelta(days=1))),
]

# Absolute dates: regex that isolates the token + strptime templates to try.
_ABSOLUTE_RULES: list[tuple[re.Pattern[str], tuple[str, ...]]] = [
    (re.compile(r"\b(\d{4}-\d{2}-\d{2})\b"), ("%Y-%m-%d",)),
    (re.compile(r"\b(\d{1,2}[/-]\d{1,2}[/-]\d{2,4})\b"), ("%d/%m/%Y", "%d-%m-%Y", "%d/%m/%y", "%d-%m-%y")),
    (
        re.compile(r"\b(\d{1,2}\s+[A-Za-z]{3,9},?\s+\d{4})\b"),
        ("%d %b %Y", "%d %B %Y", "%d %b, %Y", "%d %B, %Y"),
    ),
    (
        re.compile(r"\b([A-Za-z]{3,9}\s+\d{1,2},?\s+\d{4})\b"),
        ("%b %d %Y", "%B %d %Y", "%b %d, %Y", "%B %d, %Y"),
    ),
]


def parse_posted(text: str | None, now: datetime) -> datetime | None:
    """
    Resolve free-text date to an absolute UTC timestamp relative to `now`.
    Returns None when no pattern matches or the offset is out of range.
    """
    if not text:
        return None
    lowered = " ".join(str(text).lower().split())

    for pattern, resolve in _RELATIVE_RULES:
        m = pattern.search(lowered)
        if m:
            try:
                return resolve(m, now)
            except (OverflowError, ValueError):
                # offset runs past the datetime range (e.g. "900000 days ago")
                return None

    raw = " ".join(str(text).split())
    for pattern, templates in _ABSOLUTE_RULES:
        m = pattern.search(raw)
        if not m:
            continue
        token = m.group(1)
        for fmt in templates:
            try:
                parsed = datetime.strptime(token, fmt).replace(tzinfo=timezone.utc)
            except ValueError:
                continue
            # Never report a posting as newer than the moment we saw it.
            return min(parsed, now)
    return None


def normalize_record(record: JobRecord, now: datetime, default_recency_days: int) -> JobRecord:
    """
    Fill record.posted_at in place. Adapter-supplied timestamps win; then the
    captured posted_text; then now - default_recency_days.
    """
    if record.posted_at is None:
        parsed = parse_posted(record.posted_text, now)
        record.posted_at = parsed if parsed is not None else now - timedelta(days=default_recency_days)
    return record


def is_fresh(record: JobRecord, now: datetime, window_days: int) -> bool:
    """Records without a timestamp are kept."""
    if record.posted_at is None:
        return True
    return record.posted_at >= now - timedelta(days=window_days)
