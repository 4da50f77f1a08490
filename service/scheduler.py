# service/scheduler.py
from __future__ import annotations

import logging
import os
import threading
import time as _time
from collections.abc import Iterable
from datetime import datetime
from typing import Any

from apscheduler.executors.pool import ThreadPoolExecutor
from apscheduler.jobstores.memory import MemoryJobStore
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from modules.entry_jobs.lib.config import Settings
from modules.entry_jobs.main import AggregatorService, build_service

from . import config_schema
from .logging_utils import write_activity_log

LOG = logging.getLogger(__name__)

REFRESH_JOB_ID = "entry_jobs.refresh"


# ---- Public controller ------------------------------------------------------


class RefreshController:
    """
    Handle on the running refresh scheduler. Exposes stop()/join() for the CLI
    and the aggregator service (cache, monitor) for readers.
    """

    def __init__(self, scheduler: BackgroundScheduler, service: AggregatorService) -> None:
        self._scheduler = scheduler
        self.service = service
        self._stopped_evt = threading.Event()

    @property
    def cache(self):
        return self.service.cache

    def stop(self) -> None:
        """Cancel any in-flight cycle and shut APScheduler down."""
        self.service.orchestrator.cancel()
        if self._scheduler.running:
            LOG.info("Shutting down refresh scheduler...")
            self._scheduler.shutdown(wait=False)
        self._stopped_evt.set()
        LOG.info("Refresh scheduler shut down complete.")

    def join(self, timeout: float | None = None) -> bool:
        """True if stopped before `timeout`."""
        return self._stopped_evt.wait(timeout=timeout)

    def get_job_ids(self) -> Iterable[str]:
        return (job.id for job in self._scheduler.get_jobs())

    def next_run_time(self) -> datetime | None:
        job = self._scheduler.get_job(REFRESH_JOB_ID)
        return getattr(job, "next_run_time", None) if job else None


# ---- Module API -------------------------------------------------------------


def start(config_path: str | None = None, *, service: AggregatorService | None = None) -> RefreshController:
    """
    Load configuration, wire the aggregator, register the periodic refresh
    job and start APScheduler.

    Notes:
      * APScheduler 3.x wants a pytz scheduler timezone.
      * max_instances=1 + coalesce=True: a slow cycle never overlaps the next
        tick, and missed ticks collapse into one run.
    """
    cfg = config_schema.load_config(config_path)
    config_schema.validate(cfg)
    tz = _resolve_timezone(cfg)

    if service is None:
        service = build_service(Settings.from_env_and_kwargs(cfg["aggregator"]))

    scheduler = BackgroundScheduler(
        timezone=tz,
        job_defaults={"coalesce": True, "max_instances": 1},
        executors={"default": ThreadPoolExecutor(1)},
        jobstores={"default": MemoryJobStore()},
    )

    refresh = cfg["refresh"]
    _add_job(
        scheduler,
        service,
        _build_trigger(refresh, tz),
        run_at_start=bool(refresh.get("run_at_start", True)),
        misfire_grace_time=_int_or(refresh.get("misfire_grace_time"), None),
    )

    scheduler.start()
    LOG.info("Refresh scheduler started (interval=%s, tz=%s).", refresh.get("interval"), tz)
    return RefreshController(scheduler, service)


# ---- Helpers ----------------------------------------------------------------


def _resolve_timezone(cfg: dict[str, Any]):
    """config['timezone'] -> env TZ -> UTC, as a pytz zone."""
    import pytz

    tz_name = cfg.get("timezone") or os.getenv("TZ") or "UTC"
    try:
        return pytz.timezone(tz_name)
    except pytz.UnknownTimeZoneError:
        LOG.warning("Falling back to UTC timezone (invalid tz '%s')", tz_name)
        return pytz.UTC


def _build_trigger(refresh: dict[str, Any], tz) -> IntervalTrigger:
    """
    Build the refresh IntervalTrigger from
      {"interval": {weeks|days|hours|minutes|seconds}, "jitter"?: seconds}
    """
    interval = refresh.get("interval") or {}
    if not isinstance(interval, dict):
        raise ValueError("refresh.interval must be an object with time fields")

    unknown = set(interval) - {"weeks", "days", "hours", "minutes", "seconds"}
    if unknown:
        raise ValueError(f"interval has unknown field(s): {sorted(unknown)}")

    kwargs: dict[str, int] = {}
    for name in ("weeks", "days", "hours", "minutes", "seconds"):
        if name not in interval:
            continue
        try:
            v = int(interval[name])
        except (TypeError, ValueError) as err:
            raise ValueError(f"interval.{name} must be an integer") from err
        if v < 0:
            raise ValueError(f"interval.{name} must be >= 0")
        if v:
            kwargs[name] = v
    if not kwargs:
        raise ValueError("interval must be greater than 0 (provide at least one nonzero time field)")

    jitter = _int_or(refresh.get("jitter"), 0)
    if jitter:
        return IntervalTrigger(timezone=tz, jitter=jitter, **kwargs)
    return IntervalTrigger(timezone=tz, **kwargs)


def _add_job(
    scheduler: BackgroundScheduler,
    service: AggregatorService,
    trigger: IntervalTrigger,
    *,
    run_at_start: bool,
    misfire_grace_time: int | None,
) -> None:
    """
    Register the refresh job. The wrapper logs start/finish + duration and
    never lets an exception escape into APScheduler.
    """

    def _job_wrapper() -> None:
        started = _time.monotonic()
        LOG.info("Refresh cycle starting")
        try:
            generation = service.cache.trigger_refresh()
        except Exception:
            LOG.exception("Refresh cycle raised an exception.")
            _write_activity(status="error", duration_s=_time.monotonic() - started)
            return

        duration = _time.monotonic() - started
        LOG.info("Refresh cycle finished in %.3fs (%d records)", duration, len(generation.records))
        _write_activity(
            status="ok",
            duration_s=duration,
            records=len(generation.records),
            failed_sources=generation.failed_sources(),
        )

    extra: dict[str, Any] = {}
    if run_at_start:
        extra["next_run_time"] = datetime.now(scheduler.timezone)

    scheduler.add_job(
        func=_job_wrapper,
        trigger=trigger,
        id=REFRESH_JOB_ID,
        max_instances=1,
        coalesce=True,
        misfire_grace_time=misfire_grace_time,
        replace_existing=True,
        **extra,
    )
    LOG.debug("Registered job[%s] trigger=%s run_at_start=%s", REFRESH_JOB_ID, trigger, run_at_start)


def _write_activity(status: str, duration_s: float, **fields: Any) -> None:
    """Best-effort activity record for one scheduled run."""
    try:
        write_activity_log({
            "component": "service.scheduler",
            "op": "job_run",
            "job_id": REFRESH_JOB_ID,
            "status": status,
            "duration_ms": int(duration_s * 1000),
            **fields,
        })
    except (OSError, TypeError, ValueError):
        LOG.debug("write_activity_log failed for job[%s]", REFRESH_JOB_ID, exc_info=True)


def _int_or(v: Any, default: int | None) -> int | None:
    """int(v), or default when v is None/invalid."""
    try:
        return int(v) if v is not None else default
    except (TypeError, ValueError):
        return default
