# entry_jobs/scrapers/__init__.py
from __future__ import annotations

# Importing each adapter module registers it.
from . import (
    cutshort,
    freshersworld,
    glassdoor,
    hirist,
    indeed,
    internshala,
    jobsora,
    linkedin,
    naukri,
    shine,
    stub,
    wellfound,
)
from .base import BaseAdapter
from .registry import all_kinds, get, register

PORTAL_KINDS = tuple(sorted(k for k in all_kinds() if k != "stub"))

__all__ = [
    "PORTAL_KINDS",
    "BaseAdapter",
    "all_kinds",
    "cutshort",
    "freshersworld",
    "get",
    "glassdoor",
    "hirist",
    "indeed",
    "internshala",
    "jobsora",
    "linkedin",
    "naukri",
    "register",
    "shine",
    "stub",
    "wellfound",
]
