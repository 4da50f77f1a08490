"""
Weighted-keyword INTERNSHIP / FULL_TIME classifier.

Each keyword map is scored independently: a keyword found in the title adds
weight * 1.5, one found only in the description adds its weight. The sum is
divided by the map's total weight and clamped to [0, 1]. Negative indicators
halve a score; the duration and stipend patterns add fixed bonuses to the
internship score. Both scores are clamped again after adjustment.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from .models import JobRecord, JobType

THRESHOLD = 0.4
TITLE_MULTIPLIER = 1.5
DURATION_BONUS = 0.3
STIPEND_BONUS = 0.2

INTERNSHIP_KEYWORDS: dict[str, float] = {
    "intern": 0.95,
    "internship": 1.0,
    "trainee": 0.85,
    "traineeship": 0.9,
    "apprentice": 0.8,
    "student": 0.7,
    "co-op": 0.9,
    "coop": 0.9,
    "summer intern": 0.95,
    "winter intern": 0.95,
    "graduate intern": 0.9,
    "internship program": 1.0,
    "stipend": 0.7,
    "learn and earn": 0.8,
    "training program": 0.75,
    "entry level intern": 0.9,
}

FULL_TIME_KEYWORDS: dict[str, float] = {
    "full time": 0.95,
    "full-time": 0.95,
    "permanent": 0.9,
    "regular": 0.85,
    "fulltime": 0.95,
    "ft": 0.8,
    "f/t": 0.8,
    "employee": 0.75,
    "staff": 0.75,
    "full time position": 0.95,
    "permanent role": 0.9,
    "regular employment": 0.85,
    "benefits package": 0.7,
    "health insurance": 0.65,
    "pto": 0.6,
    "paid time off": 0.6,
}

NEGATIVE_INTERNSHIP = ("senior", "lead", "manager", "director", "vp", "vice president", "5+ years", "10+ years")
NEGATIVE_FULL_TIME = ("temporary", "contract", "freelance", "part-time", "part time", "hourly", "gig")

_DURATION_RE = re.compile(r"(\d+)\s*(months?|weeks?|days?)\s*(intern|internship|program|duration)")
_STIPEND_RE = re.compile(r"stipend|allowance|monthly.*\d+.*rupees?|\d+.*per month")
_NON_ALNUM_RE = re.compile(r"[^a-z0-9]+")


@dataclass(frozen=True)
class Classification:
    job_type: JobType
    internship_score: float
    full_time_score: float

    @property
    def confidence(self) -> float:
        return max(self.internship_score, self.full_time_score)


def normalize(text: str | None) -> str:
    """Lowercase, punctuation to spaces, collapsed whitespace, padded with one space each side."""
    cleaned = _NON_ALNUM_RE.sub(" ", (text or "").lower()).strip()
    return f" {cleaned} " if cleaned else " "


def _contains(haystack: str, keyword: str) -> bool:
    needle = normalize(keyword)
    return needle.strip() != "" and needle in haystack


def _clamp(v: float) -> float:
    return max(0.0, min(1.0, v))


def _keyword_score(keywords: dict[str, float], title: str, description: str) -> float:
    total_weight = sum(keywords.values())
    raw = 0.0
    for kw, weight in keywords.items():
        if _contains(title, kw):
            raw += weight * TITLE_MULTIPLIER
        elif _contains(description, kw):
            raw += weight
    return _clamp(raw / total_weight) if total_weight else 0.0


def _negative_hits(indicators: tuple[str, ...], lowered_raw: str, combined: str) -> int:
    """Number of distinct indicators present; "part-time" and "part time" count once."""
    hits = set()
    for ind in indicators:
        # "5+ years" loses its "+" under normalization, so check the raw text.
        found = ind in lowered_raw if "+" in ind else _contains(combined, ind)
        if found:
            hits.add(ind if "+" in ind else normalize(ind))
    return len(hits)


def score(title: str | None, description: str | None) -> tuple[float, float]:
    """Return (internship_score, full_time_score), each within [0, 1]."""
    norm_title = normalize(title)
    norm_desc = normalize(description)
    combined = normalize(f"{title or ''} {description or ''}")
    lowered_raw = f"{title or ''} {description or ''}".lower()

    internship = _keyword_score(INTERNSHIP_KEYWORDS, norm_title, norm_desc)
    full_time = _keyword_score(FULL_TIME_KEYWORDS, norm_title, norm_desc)

    # each indicator found halves the score again
    internship *= 0.5 ** _negative_hits(NEGATIVE_INTERNSHIP, lowered_raw, combined)
    full_time *= 0.5 ** _negative_hits(NEGATIVE_FULL_TIME, lowered_raw, combined)

    if _DURATION_RE.search(combined):
        internship += DURATION_BONUS
    if _STIPEND_RE.search(lowered_raw):
        internship += STIPEND_BONUS

    return _clamp(internship), _clamp(full_time)


def classify(title: str | None, description: str | None) -> Classification:
    internship, full_time = score(title, description)

    if internship >= THRESHOLD and full_time >= THRESHOLD:
        job_type = JobType.BOTH
    elif internship >= THRESHOLD:
        job_type = JobType.INTERNSHIP
    elif full_time >= THRESHOLD:
        job_type = JobType.FULL_TIME
    else:
        lowered_title = (title or "").lower()
        job_type = JobType.INTERNSHIP if ("intern" in lowered_title or "trainee" in lowered_title) else JobType.FULL_TIME

    return Classification(job_type=job_type, internship_score=internship, full_time_score=full_time)


def classify_record(record: JobRecord) -> JobRecord:
    """Set job_type + classification_confidence in place (UNKNOWN types only)."""
    result = classify(record.title, record.description)
    if record.job_type is JobType.UNKNOWN:
        record.job_type = result.job_type
    record.classification_confidence = result.confidence
    return record


def is_internship(record: JobRecord, min_confidence: float = THRESHOLD) -> bool:
    return record.job_type in (JobType.INTERNSHIP, JobType.BOTH) and record.classification_confidence >= min_confidence


def is_full_time(record: JobRecord, min_confidence: float = THRESHOLD) -> bool:
    return record.job_type in (JobType.FULL_TIME, JobType.BOTH) and record.classification_confidence >= min_confidence
