from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Any

_WS_RE = re.compile(r"\s+")
_SLUG_RE = re.compile(r"[^0-9a-z]+")
_TRUE_WORDS = frozenset({"1", "true", "yes", "on", "y", "t"})


def truthy(v: Any) -> bool:
    """bools pass through, numbers are nonzero, strings must be a yes-word."""
    if isinstance(v, bool):
        return v
    if isinstance(v, (int, float)):
        return v != 0
    return v is not None and str(v).strip().lower() in _TRUE_WORDS


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def iso_or_none(dt: datetime | None) -> str | None:
    """ISO-8601 with a trailing Z for UTC; None stays None."""
    return None if dt is None else dt.isoformat().replace("+00:00", "Z")


def clean_text(s: str | None) -> str:
    """Collapse runs of whitespace and strip; None becomes ''."""
    return _WS_RE.sub(" ", str(s)).strip() if s else ""


def slugify(s: str, sep: str = "-") -> str:
    """Lowercase path slug as the portals build them ("Software Engineer" -> "software-engineer")."""
    return _SLUG_RE.sub(sep, (s or "").lower()).strip(sep)
