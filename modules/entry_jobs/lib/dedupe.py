from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass, field

from .models import JobRecord

# Field caps shared with downstream storage.
MAX_DESCRIPTION = 5000
MAX_TITLE = 255
MAX_COMPANY = 255
MAX_APPLY_URL = 1000
ELLIPSIS = "..."

_STRIP_RE = re.compile(r"[\W_]+", re.UNICODE)


@dataclass
class DedupeResult:
    records: list[JobRecord] = field(default_factory=list)
    dropped: int = 0


def _truncate(value: str, cap: int) -> str:
    if value is None or len(value) <= cap:
        return value
    return value[: cap - len(ELLIPSIS)] + ELLIPSIS


def truncate_fields(record: JobRecord) -> JobRecord:
    """Clamp over-length fields in place; the ellipsis counts toward the cap."""
    record.description = _truncate(record.description, MAX_DESCRIPTION)
    record.title = _truncate(record.title, MAX_TITLE)
    record.company = _truncate(record.company, MAX_COMPANY)
    record.apply_url = _truncate(record.apply_url, MAX_APPLY_URL)
    return record


def fingerprint(record: JobRecord) -> str:
    """
    Lowercased title + company + apply URL with whitespace and punctuation removed.
    Source is not part of the key.
    """
    joined = f"{record.title or ''}{record.company or ''}{record.apply_url or ''}".lower()
    return _STRIP_RE.sub("", joined)


def deduplicate(records: Iterable[JobRecord]) -> DedupeResult:
    """Single pass; first occurrence of each fingerprint wins."""
    seen: set[str] = set()
    out = DedupeResult()
    for rec in records:
        truncate_fields(rec)
        key = fingerprint(rec)
        if key in seen:
            out.dropped += 1
            continue
        seen.add(key)
        out.records.append(rec)
    return out
