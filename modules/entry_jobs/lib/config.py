from __future__ import annotations

import json
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

import yaml

from .utils import truthy


# -----------------------------
# Exceptions
# -----------------------------
class ConfigError(ValueError):
    """Raised when provided kwargs/env/files cannot form a valid Settings."""


# -----------------------------
# Per-portal defaults
# -----------------------------
# Applied under whatever a source entry specifies. Delays are per-portal
# politeness defaults in milliseconds.
PORTAL_DEFAULTS: dict[str, dict[str, Any]] = {
    "naukri": {"request_delay_ms": 3000, "search_query": "software engineer"},
    "indeed": {"request_delay_ms": 5000, "search_query": "software engineer entry level", "default_recency_days": 1},
    "linkedin": {"request_delay_ms": 5000, "search_query": "entry level software"},
    "internshala": {"request_delay_ms": 2000, "search_query": "software development"},
    "glassdoor": {"request_delay_ms": 2000, "search_query": "software engineer entry level"},
    "shine": {"request_delay_ms": 3000, "search_query": "software engineer"},
    "wellfound": {"request_delay_ms": 4000, "search_query": "software engineer"},
    "freshersworld": {"request_delay_ms": 2000, "search_query": "software engineer"},
    "hirist": {"request_delay_ms": 5000, "search_query": "software engineer", "max_pages": 2},
    "cutshort": {"request_delay_ms": 2000, "search_query": "software engineer"},
    "jobsora": {"request_delay_ms": 3000, "search_query": "software engineer entry level"},
}

# camelCase keys accepted in source files alongside snake_case
_KEY_ALIASES = {
    "searchQuery": "search_query",
    "requestDelayMs": "request_delay_ms",
    "requestDelay": "request_delay_ms",
    "maxPages": "max_pages",
    "maxRetries": "max_retries",
    "dateFilterDays": "date_filter_days",
    "deepScrapingEnabled": "deep_scrape",
    "deepScraping": "deep_scrape",
    "linkVerificationEnabled": "link_verify",
    "linkVerification": "link_verify",
    "experienceMax": "experience_max",
    "defaultRecencyDays": "default_recency_days",
}


# -----------------------------
# Models
# -----------------------------
@dataclass(frozen=True)
class SourceConfig:
    """
    One portal's scrape settings for a cycle. Immutable once loaded.
    - kind: adapter id in the registry (e.g., "naukri", "indeed", "stub")
    - source: label carried on records and stats (defaults to kind)
    - params: adapter-specific extras (the stub adapter reads its items here)
    """

    kind: str
    source: str = ""
    enabled: bool = True
    search_query: str = "software engineer"
    location: str = "India"
    request_delay_ms: int = 3000
    max_pages: int = 3
    max_retries: int = 3
    date_filter_days: int = 7
    deep_scrape: bool = False
    link_verify: bool = False
    experience_max: int = 1
    default_recency_days: int = 3
    params: dict[str, Any] = field(default_factory=dict)

    @property
    def label(self) -> str:
        return self.source or self.kind


@dataclass
class Settings:
    """
    Canonical configuration for the aggregator.

    Sources come from (first match wins):
      1) sources_path: JSON or YAML file holding a list or a {kind: {...}} mapping
      2) sources: the same shapes passed inline via kwargs
      3) every built-in portal with its defaults
    """

    sources_path: str | None = None
    sources_inline: Any = None
    _selected: list[SourceConfig] = field(default_factory=list, repr=False)

    # Pipeline behavior
    freshness_days: int = 7
    max_workers: int = 3
    skip_network: bool = False
    rendered_tier: bool = True

    # Fetch tier
    static_timeout: float = 20.0
    render_timeout_ms: int = 30000
    render_settle_ms: int = 5000
    retry_base_ms: int = 3000
    retry_jitter_ms: int = 2000

    # Extras
    deep_scrape_limit: int = 10
    link_verify_timeout: float = 5.0
    quality_threshold: float = 0.8

    # ------------- convenience -------------
    def enabled_sources(self) -> list[SourceConfig]:
        return [sc for sc in self.selected_sources() if sc.enabled]

    def selected_sources(self) -> list[SourceConfig]:
        """
        Return the full (enabled and disabled) list of SourceConfig for this run.
        Parsed once and cached on the instance.
        """
        if self._selected:
            return self._selected

        if self.sources_path:
            self._selected = _parse_sources(_read_sources_file(self.sources_path))
        elif self.sources_inline is not None:
            self._selected = _parse_sources(self.sources_inline)
        else:
            self._selected = [_build_source({"kind": kind}, f"defaults[{kind}]") for kind in PORTAL_DEFAULTS]
        return self._selected

    # ------------- constructors -------------
    @classmethod
    def from_env_and_kwargs(cls, kwargs: Mapping[str, Any] | None) -> Settings:
        """
        Build Settings from kwargs with validation.

        Expected kwargs (all optional):

            sources_path: str         # JSON or YAML file with source entries
            sources: list | dict      # inline source entries
            freshness_days: int = 7
            max_workers: int = 3
            skip_network: bool = false
            rendered_tier: bool = true
            static_timeout: float = 20
            render_timeout_ms: int = 30000
            render_settle_ms: int = 5000
            retry_base_ms: int = 3000
            retry_jitter_ms: int = 2000
            deep_scrape_limit: int = 10
            link_verify_timeout: float = 5
            quality_threshold: float = 0.8
        """
        kw = dict(kwargs or {})

        sources_path = kw.get("sources_path")
        if sources_path is not None:
            sources_path = str(sources_path).strip() or None

        try:
            settings = cls(
                sources_path=sources_path,
                sources_inline=kw.get("sources"),
                freshness_days=_int_kw(kw, "freshness_days", 7),
                max_workers=_int_kw(kw, "max_workers", 3),
                skip_network=truthy(kw.get("skip_network")),
                rendered_tier=truthy(kw["rendered_tier"]) if "rendered_tier" in kw else True,
                static_timeout=float(kw.get("static_timeout") or 20.0),
                render_timeout_ms=_int_kw(kw, "render_timeout_ms", 30000),
                render_settle_ms=_int_kw(kw, "render_settle_ms", 5000),
                retry_base_ms=_int_kw(kw, "retry_base_ms", 3000),
                retry_jitter_ms=_int_kw(kw, "retry_jitter_ms", 2000),
                deep_scrape_limit=_int_kw(kw, "deep_scrape_limit", 10),
                link_verify_timeout=float(kw.get("link_verify_timeout") or 5.0),
                quality_threshold=float(kw.get("quality_threshold", 0.8)),
            )
        except ConfigError:
            raise
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid aggregator setting: {e}") from e
        _validate_settings(settings)
        return settings


# -----------------------------
# Helpers
# -----------------------------
def _int_kw(kw: Mapping[str, Any], name: str, default: int) -> int:
    v = kw.get(name)
    if v is None or v == "":
        return default
    try:
        return int(v)
    except (TypeError, ValueError) as err:
        raise ConfigError(f"'{name}' must be an integer (got {v!r}).") from err


def _parse_sources(value: Any) -> list[SourceConfig]:
    """
    Accepts:
      [{"kind": "naukri", "search_query": "...", ...}, ...]
      {"naukri": {"enabled": true, ...}, "indeed": {...}}
    """
    if not value:
        return []
    items: list[tuple[str, dict[str, Any]]] = []
    if isinstance(value, Mapping):
        for kind, entry in value.items():
            if entry is None:
                entry = {}
            if not isinstance(entry, Mapping):
                raise ConfigError(f"Source {kind!r} must be an object.")
            items.append((f"sources[{kind}]", {"kind": kind, **dict(entry)}))
    elif isinstance(value, list):
        for i, entry in enumerate(value):
            if not isinstance(entry, Mapping):
                raise ConfigError(f"Item[{i}] must be an object.")
            items.append((f"Item[{i}]", dict(entry)))
    else:
        raise ConfigError("Expected a list of source objects or a mapping of kind -> object.")

    return [_build_source(entry, where) for where, entry in items]


def _build_source(entry: dict[str, Any], where: str) -> SourceConfig:
    raw = {_KEY_ALIASES.get(k, k): v for k, v in entry.items()}
    kind = str(raw.get("kind") or "").strip().lower()
    if not kind:
        raise ConfigError(f"{where} requires 'kind'.")

    merged: dict[str, Any] = {**PORTAL_DEFAULTS.get(kind, {}), **raw}
    params = merged.get("params") or {}
    if not isinstance(params, dict):
        raise ConfigError(f"{where}.params must be an object.")

    known = set(SourceConfig.__dataclass_fields__) - {"kind", "params"}
    unknown = set(merged) - known - {"kind", "params"}
    if unknown:
        raise ConfigError(f"{where} has unknown field(s): {sorted(unknown)}")

    def _int(name: str, default: int) -> int:
        v = merged.get(name, default)
        try:
            return int(v)
        except (TypeError, ValueError) as err:
            raise ConfigError(f"{where}.{name} must be an integer (got {v!r}).") from err

    def _bool(name: str, default: bool) -> bool:
        return truthy(merged[name]) if name in merged else default

    return SourceConfig(
        kind=kind,
        source=str(merged.get("source") or kind).strip(),
        enabled=_bool("enabled", True),
        search_query=str(merged.get("search_query") or "software engineer").strip(),
        location=str(merged.get("location", "India") or "").strip(),
        request_delay_ms=_int("request_delay_ms", 3000),
        max_pages=_int("max_pages", 3),
        max_retries=_int("max_retries", 3),
        date_filter_days=_int("date_filter_days", 7),
        deep_scrape=_bool("deep_scrape", False),
        link_verify=_bool("link_verify", False),
        experience_max=_int("experience_max", 1),
        default_recency_days=_int("default_recency_days", 3),
        params=dict(params),
    )


def _validate_settings(s: Settings) -> None:
    if s.max_workers <= 0:
        raise ConfigError("'max_workers' must be >= 1.")
    if s.freshness_days < 0:
        raise ConfigError("'freshness_days' must be >= 0.")
    if s.retry_base_ms < 0 or s.retry_jitter_ms < 0:
        raise ConfigError("'retry_base_ms' and 'retry_jitter_ms' must be >= 0.")
    if s.static_timeout <= 0 or s.link_verify_timeout <= 0:
        raise ConfigError("Timeouts must be > 0.")
    if s.render_timeout_ms <= 0 or s.render_settle_ms < 0:
        raise ConfigError("'render_timeout_ms' must be > 0 and 'render_settle_ms' >= 0.")
    if s.deep_scrape_limit < 0:
        raise ConfigError("'deep_scrape_limit' must be >= 0.")
    if not 0.0 <= s.quality_threshold <= 1.0:
        raise ConfigError("'quality_threshold' must be within [0, 1].")

    # Importing the package registers every built-in adapter.
    from .scrapers import registry

    selected = s.selected_sources()
    if not selected:
        raise ConfigError("No sources configured.")

    known_kinds = registry.all_kinds()
    seen: set[str] = set()
    for sc in selected:
        if sc.kind not in known_kinds:
            raise ConfigError(f"Unknown source kind {sc.kind!r}; known: {sorted(known_kinds)}")
        if sc.label in seen:
            raise ConfigError(f"Duplicate source label {sc.label!r}.")
        seen.add(sc.label)
        if sc.request_delay_ms < 0:
            raise ConfigError(f"{sc.label}: 'request_delay_ms' must be >= 0.")
        if sc.max_pages < 1:
            raise ConfigError(f"{sc.label}: 'max_pages' must be >= 1.")
        if sc.max_retries < 1:
            raise ConfigError(f"{sc.label}: 'max_retries' must be >= 1.")
        if sc.date_filter_days < 0:
            raise ConfigError(f"{sc.label}: 'date_filter_days' must be >= 0.")
        if sc.experience_max < 0 or sc.default_recency_days < 0:
            raise ConfigError(f"{sc.label}: 'experience_max' and 'default_recency_days' must be >= 0.")


def _read_sources_file(path: str) -> Any:
    """JSON, or YAML when the extension says so."""
    try:
        with open(path, encoding="utf-8") as f:
            if os.path.splitext(path)[1].lower() in (".yml", ".yaml"):
                return yaml.safe_load(f)
            return json.load(f)
    except FileNotFoundError as e:
        raise ConfigError(f"sources file not found: {path}") from e
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise ConfigError(f"sources file is not valid: {path} ({e})") from e
