from __future__ import annotations

import logging
import threading
from collections.abc import Callable

from . import logging_bridge
from .models import ScrapeCycleResult
from .utils import iso_or_none

log = logging.getLogger(__name__)

CycleRunner = Callable[[], ScrapeCycleResult]


class ListingCache:
    """
    Holds the last published generation.

    Readers never block: they get whatever generation the reference points at.
    A refresh computes a complete new generation off to the side and swaps the
    reference in one assignment. At most one cycle runs at a time; a refresh
    requested while another is in flight returns the current generation.
    """

    def __init__(self, run_cycle: CycleRunner | None = None) -> None:
        self._run_cycle = run_cycle
        self._current = ScrapeCycleResult.never_run()
        self._cycle_lock = threading.Lock()
        self._flag_lock = threading.Lock()
        self._stale = False
        self._background: threading.Thread | None = None
        self.last_error: str | None = None

    @property
    def refreshing(self) -> bool:
        return self._cycle_lock.locked()

    def get_current_listings(self) -> ScrapeCycleResult:
        generation = self._current
        if self._stale:
            self._schedule_background()
        return generation

    def invalidate(self) -> None:
        """Drop the published generation; the next read kicks off a refresh."""
        with self._flag_lock:
            self._current = ScrapeCycleResult.never_run()
            self._stale = True
        logging_bridge.activity({"component": "entry_jobs.cache", "op": "invalidate"})

    def trigger_refresh(self) -> ScrapeCycleResult:
        if self._run_cycle is None:
            raise RuntimeError("ListingCache has no cycle runner attached")
        if not self._cycle_lock.acquire(blocking=False):
            logging_bridge.activity({
                "component": "entry_jobs.cache",
                "op": "refresh_skipped",
                "reason": "cycle already running",
            })
            return self._current
        try:
            generation = self._run_cycle()
        except Exception as e:
            self.last_error = repr(e)
            logging_bridge.error({
                "component": "entry_jobs.cache",
                "op": "refresh",
                "error": repr(e),
            })
            return self._current
        else:
            with self._flag_lock:
                self._current = generation
                self._stale = False
            self.last_error = None
            logging_bridge.activity({
                "component": "entry_jobs.cache",
                "op": "published",
                "generated_at": iso_or_none(generation.generated_at),
                "records": len(generation.records),
            })
            return generation
        finally:
            self._cycle_lock.release()

    def refresh(self) -> None:
        """Scheduler entry point."""
        self.trigger_refresh()

    def _schedule_background(self) -> None:
        if self._run_cycle is None:
            return
        with self._flag_lock:
            if self._background is not None and self._background.is_alive():
                return
            if self._cycle_lock.locked():
                return
            self._background = threading.Thread(
                target=self.refresh,
                name="entry-jobs-refresh",
                daemon=True,
            )
            self._background.start()

    def wait_for_background(self, timeout: float | None = None) -> None:
        t = self._background
        if t is not None:
            t.join(timeout)
