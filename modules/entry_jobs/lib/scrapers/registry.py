from __future__ import annotations

from .base import BaseAdapter

# kind -> adapter class; filled at import time by @register
_ADAPTERS: dict[str, type[BaseAdapter]] = {}


def _key(kind: str | None) -> str:
    return (kind or "").strip().lower()


def register(cls: type[BaseAdapter]) -> type[BaseAdapter]:
    """Class decorator: file an adapter under its `kind`. A kind maps to exactly one class."""
    key = _key(getattr(cls, "kind", ""))
    if not key:
        raise ValueError(f"{cls.__name__} has no 'kind'; cannot register it.")
    if not cls.base_url.startswith(("http://", "https://")):
        raise ValueError(f"{cls.__name__}.base_url must be an absolute http(s) URL.")
    existing = _ADAPTERS.setdefault(key, cls)
    if existing is not cls:
        raise ValueError(f"Portal {key!r} is already handled by {existing.__name__}.")
    return cls


def get(kind: str) -> type[BaseAdapter]:
    """Adapter class for `kind` (case-insensitive); KeyError when unknown."""
    try:
        return _ADAPTERS[_key(kind)]
    except KeyError:
        raise KeyError(f"No adapter for portal {kind!r}; known: {sorted(_ADAPTERS)}") from None


def all_kinds() -> dict[str, type[BaseAdapter]]:
    return dict(_ADAPTERS)
