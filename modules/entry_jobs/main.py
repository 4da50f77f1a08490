from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .lib.cache import ListingCache
from .lib.config import Settings
from .lib.engine import Orchestrator
from .lib.logging_bridge import activity as log_activity
from .lib.models import ScrapeCycleResult
from .lib.monitor import ScrapingMonitor


@dataclass
class AggregatorService:
    """The wired-up pipeline: one orchestrator feeding one cache."""

    settings: Settings
    monitor: ScrapingMonitor
    orchestrator: Orchestrator
    cache: ListingCache


def build_service(settings: Settings, **overrides: Any) -> AggregatorService:
    """
    Assemble monitor -> orchestrator -> cache once at startup.

    `overrides` are passed through to Orchestrator (get_adapter,
    fetch_tier_factory, sleep, rng, ...) so tests can swap the network out.
    """
    monitor = overrides.pop("monitor", None) or ScrapingMonitor(quality_threshold=settings.quality_threshold)
    orchestrator = Orchestrator(settings, monitor=monitor, **overrides)
    cache = ListingCache(orchestrator.run_cycle)
    return AggregatorService(settings=settings, monitor=monitor, orchestrator=orchestrator, cache=cache)


def run(**kwargs: Any) -> ScrapeCycleResult:
    """
    Entry point for the 'entry_jobs' module: run one aggregation cycle.

    Accepts kwargs (from the config file's `aggregator` section or the CLI),
    including:
      sources_path: Optional[str]   # JSON/YAML list or {kind: {...}} mapping
      sources: list | dict          # inline alternative to sources_path
      freshness_days: int = 7
      max_workers: int = 3
      rendered_tier: bool = True
      skip_network: bool = False

    Returns the published ScrapeCycleResult.
    """
    settings = Settings.from_env_and_kwargs(kwargs)

    log_activity({
        "component": "entry_jobs.main",
        "op": "start",
        "sources": [sc.label for sc in settings.enabled_sources()],
        "flags": {
            "skip_network": settings.skip_network,
            "rendered_tier": settings.rendered_tier,
        },
    })

    service = build_service(settings)
    return service.cache.trigger_refresh()
