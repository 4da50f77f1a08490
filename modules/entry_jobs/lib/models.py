from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from .utils import iso_or_none


class JobType(str, Enum):
    INTERNSHIP = "INTERNSHIP"
    FULL_TIME = "FULL_TIME"
    BOTH = "BOTH"
    UNKNOWN = "UNKNOWN"


@dataclass
class JobRecord:
    """
    Canonical job posting as it flows through the pipeline.

    Adapters fill what the card shows; the date normalizer, classifier and
    enricher fill the rest in place. title/company/apply_url are mandatory
    and checked at the adapter boundary (see `is_complete`).
    """

    title: str
    company: str
    apply_url: str
    source: str
    description: str = ""
    location: str = ""
    salary_range: str = ""
    job_type: JobType = JobType.UNKNOWN
    posted_at: datetime | None = None
    posted_text: str = ""
    experience_required: int | None = None
    application_deadline: datetime | None = None
    classification_confidence: float = 0.0
    ingested_at: datetime | None = None
    link_verified: bool = False

    def is_complete(self) -> bool:
        return bool(self.title.strip() and self.company.strip() and self.apply_url.strip())

    def to_dict(self) -> dict[str, Any]:
        """Flat structure handed to downstream consumers."""
        return {
            "title": self.title,
            "company": self.company,
            "description": self.description,
            "location": self.location,
            "salary_range": self.salary_range,
            "apply_url": self.apply_url,
            "source": self.source,
            "job_type": self.job_type.value,
            "posted_at": iso_or_none(self.posted_at),
            "experience_required": self.experience_required,
            "application_deadline": iso_or_none(self.application_deadline),
            "classification_confidence": round(self.classification_confidence, 4),
            "ingested_at": iso_or_none(self.ingested_at),
            "link_verified": self.link_verified,
        }


@dataclass
class ScrapeResult:
    """
    Result bundle produced by one adapter for one source.
    - records: every admitted record (NOT yet normalized or deduped).
    - errors: non-fatal issues (abandoned pages, rejected cards, detail fetches).
    """

    source: str
    records: list[JobRecord] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    pages_fetched: int = 0
    cards_rejected: int = 0


@dataclass(frozen=True)
class SourceStats:
    attempted: bool = False
    succeeded: bool = False
    jobs_found: int = 0
    last_error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "attempted": self.attempted,
            "succeeded": self.succeeded,
            "jobs_found": self.jobs_found,
            "last_error": self.last_error,
        }


@dataclass(frozen=True)
class ScrapeCycleResult:
    """
    One published generation. Replaced wholesale by the cache; never mutated.

    generated_at is None only for the placeholder returned before the first
    cycle finishes, which is how "never run" differs from "ran, found nothing".
    """

    records: tuple[JobRecord, ...] = ()
    stats: dict[str, SourceStats] = field(default_factory=dict)
    generated_at: datetime | None = None
    duplicates_dropped: int = 0
    stale_dropped: int = 0

    @classmethod
    def never_run(cls) -> ScrapeCycleResult:
        return cls()

    @property
    def has_run(self) -> bool:
        return self.generated_at is not None

    def failed_sources(self) -> list[str]:
        return sorted(src for src, st in self.stats.items() if st.attempted and not st.succeeded)

    def to_dict(self) -> dict[str, Any]:
        return {
            "generated_at": iso_or_none(self.generated_at),
            "total": len(self.records),
            "duplicates_dropped": self.duplicates_dropped,
            "stale_dropped": self.stale_dropped,
            "stats": {src: st.to_dict() for src, st in sorted(self.stats.items())},
            "records": [r.to_dict() for r in self.records],
        }
