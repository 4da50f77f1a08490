# modules/entry_jobs/lib/__init__.py
from __future__ import annotations

# Re-export commonly-used types for convenience
from .cache import ListingCache
from .config import ConfigError, Settings, SourceConfig
from .engine import CycleState, Orchestrator, run_once
from .errors import CycleCancelled, ParseError, SourceFailure
from .models import JobRecord, JobType, ScrapeCycleResult, SourceStats
from .monitor import ScrapingMonitor, ScrapingStats

# Built-in adapters register themselves on import.
from . import scrapers as _scrapers  # noqa: F401

__all__ = [
    "ConfigError",
    "CycleCancelled",
    "CycleState",
    "JobRecord",
    "JobType",
    "ListingCache",
    "Orchestrator",
    "ParseError",
    "ScrapeCycleResult",
    "ScrapingMonitor",
    "ScrapingStats",
    "Settings",
    "SourceConfig",
    "SourceFailure",
    "SourceStats",
    "run_once",
]
