"""
Orchestrator for one aggregation cycle.

Features:
  - Fixed worker pool; each worker owns one FetchTier (HTTP session +
    browser session) for its whole life and pulls sources from a queue
  - Per-source isolation: SourceFailure / unexpected errors become stats
  - Ordered stages: FETCHING -> NORMALIZING -> FILTERING -> DEDUPING -> READY
  - Cooperative cancellation through a shared Event
  - Dependency injection for testability (`get_adapter`, `fetch_tier_factory`)
  - Structured logging via `logging_bridge`
"""

from __future__ import annotations

import logging
import queue
import random
import threading
import time
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from enum import Enum

from . import classifier, dates, dedupe, enricher, logging_bridge
from .browser import BrowserSession
from .config import Settings, SourceConfig
from .errors import CycleCancelled, SourceFailure
from .fetcher import FetchTier
from .http_client import HttpClient
from .links import LinkVerifier
from .models import JobRecord, ScrapeCycleResult, ScrapeResult, SourceStats
from .monitor import ScrapingMonitor
from .retry import RetryController
from .scrapers.base import BaseAdapter
from .utils import utcnow

log = logging.getLogger(__name__)

FetchTierFactory = Callable[[str], FetchTier]


class CycleState(str, Enum):
    IDLE = "IDLE"
    FETCHING = "FETCHING"
    NORMALIZING = "NORMALIZING"
    FILTERING = "FILTERING"
    DEDUPING = "DEDUPING"
    READY = "READY"


@dataclass
class _SourceRun:
    cfg: SourceConfig
    index: int
    result: ScrapeResult | None = None
    error: str | None = None
    attempted: bool = True
    duration_us: int = 0
    worker: str = ""
    records: list[JobRecord] = field(default_factory=list)


# =============================================================================
# DEFAULT LOOKUPS (PRODUCTION)
# =============================================================================
def _default_get_adapter(kind: str) -> type[BaseAdapter]:
    from .scrapers.registry import get as get_adapter_class

    return get_adapter_class(kind)


def default_fetch_tier_factory(settings: Settings) -> FetchTierFactory:
    """One HttpClient + (optionally) one lazily-launched browser per worker."""

    def _factory(worker_name: str) -> FetchTier:
        browser = None
        if settings.rendered_tier:
            browser = BrowserSession(
                name=worker_name,
                timeout_ms=settings.render_timeout_ms,
                settle_ms=settings.render_settle_ms,
            )
        return FetchTier(HttpClient(timeout=settings.static_timeout), browser)

    return _factory


# =============================================================================
# ORCHESTRATOR
# =============================================================================
class Orchestrator:
    def __init__(
        self,
        settings: Settings,
        *,
        monitor: ScrapingMonitor | None = None,
        get_adapter: Callable[[str], type[BaseAdapter]] | None = None,
        fetch_tier_factory: FetchTierFactory | None = None,
        link_verifier: LinkVerifier | None = None,
        sleep: Callable[[float], None] | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.settings = settings
        self.monitor = monitor or ScrapingMonitor(quality_threshold=settings.quality_threshold)
        self._get_adapter = get_adapter or _default_get_adapter
        self._fetch_tier_factory = fetch_tier_factory or default_fetch_tier_factory(settings)
        self._link_verifier = link_verifier
        self._sleep = sleep
        self._rng = rng
        self._cancel = threading.Event()
        self._state = CycleState.IDLE
        self._state_lock = threading.Lock()

    # ---- state ----
    @property
    def state(self) -> CycleState:
        with self._state_lock:
            return self._state

    def _transition(self, new: CycleState, **fields) -> None:
        with self._state_lock:
            old, self._state = self._state, new
        logging_bridge.activity({
            "component": "entry_jobs.engine",
            "op": "state",
            "from": old.value,
            "to": new.value,
            **fields,
        })

    def cancel(self) -> None:
        """Ask running workers to abandon their current source."""
        self._cancel.set()

    # ---- cycle ----
    def run_cycle(self) -> ScrapeCycleResult:
        """
        Run one complete cycle and return the new generation. Never raises for
        source-level problems; an all-failed cycle yields an empty generation.
        A record that fails normalization is logged and dropped on its own.
        """
        try:
            return self._run_cycle()
        finally:
            with self._state_lock:
                self._state = CycleState.IDLE

    def _run_cycle(self) -> ScrapeCycleResult:
        start_ns = time.perf_counter_ns()
        self._cancel.clear()
        sources = self.settings.enabled_sources()

        self._transition(CycleState.FETCHING, sources=[s.label for s in sources])
        runs = self._fetch_all(sources)

        self._transition(CycleState.NORMALIZING)
        now = utcnow()
        merged: list[JobRecord] = []
        for run in sorted(runs, key=lambda r: r.index):
            for rec in run.records:
                try:
                    self._normalize(rec, run.cfg, now)
                except Exception as e:
                    logging_bridge.error({
                        "component": "entry_jobs.engine",
                        "op": "normalize",
                        "source": run.cfg.label,
                        "apply_url": rec.apply_url,
                        "error": repr(e),
                    })
                    continue
                merged.append(rec)

        self._transition(CycleState.FILTERING, merged=len(merged))
        fresh = [r for r in merged if dates.is_fresh(r, now, self.settings.freshness_days)]
        stale_dropped = len(merged) - len(fresh)

        self._transition(CycleState.DEDUPING, fresh=len(fresh), stale_dropped=stale_dropped)
        deduped = dedupe.deduplicate(fresh)

        stats = {run.cfg.label: self._stats_for(run) for run in runs}
        generation = ScrapeCycleResult(
            records=tuple(deduped.records),
            stats=stats,
            generated_at=now,
            duplicates_dropped=deduped.dropped,
            stale_dropped=stale_dropped,
        )

        total_us = int((time.perf_counter_ns() - start_ns) // 1000)
        self._transition(CycleState.READY, published=len(generation.records))
        logging_bridge.activity({
            "component": "entry_jobs.engine",
            "op": "summary",
            "found_by_source": {run.cfg.label: len(run.records) for run in runs},
            "failed_sources": generation.failed_sources(),
            "duplicates_dropped": deduped.dropped,
            "stale_dropped": stale_dropped,
            "published": len(generation.records),
            "durations_us": {run.cfg.label: run.duration_us for run in runs},
            "total_us": total_us,
        })
        return generation

    # ---- fetching ----
    def _fetch_all(self, sources: list[SourceConfig]) -> list[_SourceRun]:
        work: queue.Queue[_SourceRun] = queue.Queue()
        for i, cfg in enumerate(sources):
            work.put(_SourceRun(cfg=cfg, index=i))

        done: list[_SourceRun] = []
        done_lock = threading.Lock()

        def _worker(worker_name: str) -> None:
            tier: FetchTier | None = None
            retry = RetryController(
                base_ms=self.settings.retry_base_ms,
                jitter_ms=self.settings.retry_jitter_ms,
                cancel_event=self._cancel,
                rng=self._rng,
                sleep=self._sleep,
            )
            try:
                while True:
                    try:
                        run = work.get_nowait()
                    except queue.Empty:
                        return
                    if tier is None and not self._is_offline(run.cfg):
                        tier = self._fetch_tier_factory(worker_name)
                    run.worker = worker_name
                    self._run_source(run, tier, retry)
                    with done_lock:
                        done.append(run)
            finally:
                if tier is not None:
                    tier.close()

        n_workers = max(1, min(self.settings.max_workers, len(sources)))
        with ThreadPoolExecutor(max_workers=n_workers, thread_name_prefix="entry-jobs") as pool:
            futures = {pool.submit(_worker, f"worker-{i}"): i for i in range(n_workers)}
            for fut in as_completed(futures):
                try:
                    fut.result()
                except Exception as e:
                    logging_bridge.error({
                        "component": "entry_jobs.engine",
                        "op": "worker",
                        "worker": f"worker-{futures[fut]}",
                        "error": repr(e),
                    })
        return done

    def _is_offline(self, cfg: SourceConfig) -> bool:
        return cfg.kind == "stub"

    def _run_source(self, run: _SourceRun, tier: FetchTier | None, retry: RetryController) -> None:
        cfg = run.cfg
        t0 = time.perf_counter_ns()

        if self.settings.skip_network and not self._is_offline(cfg):
            run.attempted = False
            logging_bridge.activity({
                "component": "entry_jobs.engine",
                "op": "skipped_source",
                "source": cfg.label,
                "reason": "skip_network",
            })
            return

        self.monitor.record_attempt(cfg.label)
        try:
            adapter = self._get_adapter(cfg.kind)()
            result = adapter.scrape(cfg, tier, retry, deep_scrape_limit=self.settings.deep_scrape_limit)
        except CycleCancelled:
            run.error = "cancelled"
            self.monitor.record_failure(cfg.label, run.error)
            logging_bridge.activity({
                "component": "entry_jobs.engine",
                "op": "source_cancelled",
                "source": cfg.label,
            })
        except SourceFailure as e:
            run.error = e.reason
            self.monitor.record_failure(cfg.label, run.error)
            logging_bridge.error({
                "component": "entry_jobs.engine",
                "op": "source_failure",
                "source": cfg.label,
                "error": e.reason,
            })
        except Exception as e:
            run.error = repr(e)
            self.monitor.record_failure(cfg.label, run.error)
            logging_bridge.error({
                "component": "entry_jobs.engine",
                "op": "source_run",
                "source": cfg.label,
                "kind": cfg.kind,
                "error": repr(e),
            })
        else:
            run.result = result
            run.records = list(result.records)
            if result.errors:
                run.error = result.errors[-1]
            self.monitor.record_success(cfg.label, len(run.records))
            self.monitor.record_data_quality(cfg.label, run.records, result.cards_rejected)
        finally:
            run.duration_us = int((time.perf_counter_ns() - t0) // 1000)

    # ---- per-record stages ----
    def _normalize(self, rec: JobRecord, cfg: SourceConfig, now) -> None:
        rec.ingested_at = now
        dates.normalize_record(rec, now, cfg.default_recency_days)
        classifier.classify_record(rec)
        enricher.enrich_record(rec)
        if cfg.link_verify and not self.settings.skip_network:
            self._verifier().verify(rec)

    def _verifier(self) -> LinkVerifier:
        if self._link_verifier is None:
            self._link_verifier = LinkVerifier(
                HttpClient(timeout=self.settings.link_verify_timeout),
                timeout=self.settings.link_verify_timeout,
            )
        return self._link_verifier

    @staticmethod
    def _stats_for(run: _SourceRun) -> SourceStats:
        succeeded = run.attempted and run.result is not None
        return SourceStats(
            attempted=run.attempted,
            succeeded=succeeded,
            jobs_found=len(run.records),
            last_error=run.error,
        )


def run_once(
    settings: Settings,
    get_adapter: Callable[[str], type[BaseAdapter]] | None = None,
) -> ScrapeCycleResult:
    """One-shot helper: build an Orchestrator and run a single cycle."""
    return Orchestrator(settings, get_adapter=get_adapter).run_cycle()
