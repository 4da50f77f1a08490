from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable
from dataclasses import dataclass, replace
from datetime import datetime

from . import logging_bridge
from .models import JobRecord
from .utils import iso_or_none, utcnow

log = logging.getLogger(__name__)

DEFAULT_QUALITY_THRESHOLD = 0.8

AlertSink = Callable[[str, str], None]


@dataclass(frozen=True)
class ScrapingStats:
    """Point-in-time copy of one source's counters."""

    source: str
    attempts: int = 0
    successes: int = 0
    failures: int = 0
    total_jobs_found: int = 0
    records_inspected: int = 0
    records_complete: int = 0
    last_success: datetime | None = None
    last_error: str | None = None
    last_error_at: datetime | None = None

    @property
    def success_rate(self) -> float:
        return self.successes / self.attempts if self.attempts else 0.0

    @property
    def quality_score(self) -> float:
        """complete / inspected; 1.0 before anything was inspected."""
        return self.records_complete / self.records_inspected if self.records_inspected else 1.0

    def to_dict(self) -> dict:
        return {
            "source": self.source,
            "attempts": self.attempts,
            "successes": self.successes,
            "failures": self.failures,
            "success_rate": round(self.success_rate, 4),
            "total_jobs_found": self.total_jobs_found,
            "quality_score": round(self.quality_score, 4),
            "last_success": iso_or_none(self.last_success),
            "last_error": self.last_error,
            "last_error_at": iso_or_none(self.last_error_at),
        }


class ScrapingMonitor:
    """
    Per-source counters shared by all workers. Every mutation happens under
    one lock; readers get frozen copies from snapshot().
    """

    def __init__(
        self,
        *,
        quality_threshold: float = DEFAULT_QUALITY_THRESHOLD,
        alert_sink: AlertSink | None = None,
    ) -> None:
        self.quality_threshold = quality_threshold
        self.alert_sink = alert_sink
        self._lock = threading.Lock()
        self._stats: dict[str, ScrapingStats] = {}

    def _get(self, source: str) -> ScrapingStats:
        return self._stats.get(source) or ScrapingStats(source=source)

    def record_attempt(self, source: str) -> None:
        with self._lock:
            st = self._get(source)
            self._stats[source] = replace(st, attempts=st.attempts + 1)

    def record_success(self, source: str, jobs_found: int) -> None:
        with self._lock:
            st = self._get(source)
            self._stats[source] = replace(
                st,
                successes=st.successes + 1,
                total_jobs_found=st.total_jobs_found + int(jobs_found),
                last_success=utcnow(),
            )

    def record_failure(self, source: str, error: str) -> None:
        with self._lock:
            st = self._get(source)
            self._stats[source] = replace(st, failures=st.failures + 1, last_error=error, last_error_at=utcnow())

    def record_data_quality(self, source: str, records: Iterable[JobRecord], rejected: int = 0) -> float:
        """
        Count complete vs. inspected records (rejected cards count as
        incomplete). Emits an alert when this batch falls under the threshold.
        Returns the batch quality ratio.
        """
        records = list(records)
        inspected = len(records) + max(0, int(rejected))
        complete = sum(1 for r in records if r.is_complete())
        with self._lock:
            st = self._get(source)
            self._stats[source] = replace(
                st,
                records_inspected=st.records_inspected + inspected,
                records_complete=st.records_complete + complete,
            )
        if inspected == 0:
            return 1.0
        ratio = complete / inspected
        if ratio < self.quality_threshold:
            self._alert(source, f"data quality {ratio:.0%} below {self.quality_threshold:.0%} ({complete}/{inspected})")
        return ratio

    def _alert(self, source: str, message: str) -> None:
        log.warning("quality alert for %s: %s", source, message)
        logging_bridge.error({
            "component": "entry_jobs.monitor",
            "op": "quality_alert",
            "source": source,
            "message": message,
        })
        if self.alert_sink is not None:
            try:
                self.alert_sink(source, message)
            except Exception:
                log.exception("alert sink failed for %s", source)

    def snapshot(self) -> dict[str, ScrapingStats]:
        with self._lock:
            return dict(self._stats)

    def reset(self) -> None:
        with self._lock:
            self._stats.clear()
