# service/config_schema.py
from __future__ import annotations

import copy
import json
import logging
import os
from typing import Any

import yaml

logger = logging.getLogger(__name__)


class ConfigError(ValueError):
    """Raised when the service config is invalid."""


_INTERVAL_FIELDS = ("weeks", "days", "hours", "minutes", "seconds")
_REFRESH_FIELDS = {"interval", "run_at_start", "misfire_grace_time", "jitter"}
_TOP_LEVEL_FIELDS = {"timezone", "refresh", "aggregator"}

DEFAULT_CONFIG: dict[str, Any] = {
    "refresh": {"interval": {"hours": 1}, "run_at_start": True},
    "aggregator": {},
}


def load_config(path: str | None = None) -> dict[str, Any]:
    """
    Load the service configuration.

    Resolution order:
      1) Explicit `path` argument (if provided)
      2) os.environ['CONFIG_PATH'] (if set)
      3) Built-in default (hourly refresh, every built-in portal)

    Returns a normalized dict with "timezone", "refresh" and "aggregator".
    """
    resolved_path = path or os.environ.get("CONFIG_PATH")
    if not resolved_path:
        logger.info("CONFIG_PATH not provided; using built-in default config.")
        cfg = copy.deepcopy(DEFAULT_CONFIG)
    else:
        cfg = _read_any(resolved_path)

    _apply_top_level_defaults(cfg)
    return cfg


def validate(cfg: dict[str, Any]) -> None:
    """
    Structural validation of a loaded config. Raises ConfigError.
    The `aggregator` mapping is checked separately by the module's Settings.
    """
    if not isinstance(cfg, dict):
        raise ConfigError("Config must be a dict.")

    unknown = set(cfg) - _TOP_LEVEL_FIELDS
    if unknown:
        raise ConfigError(f"Unknown top-level field(s): {sorted(unknown)}")

    tz = cfg.get("timezone")
    if tz is not None and not isinstance(tz, str):
        raise ConfigError("'timezone' must be a string if provided.")

    refresh = cfg.get("refresh")
    if not isinstance(refresh, dict):
        raise ConfigError("'refresh' must be an object.")
    unknown = set(refresh) - _REFRESH_FIELDS
    if unknown:
        raise ConfigError(f"refresh has unknown field(s): {sorted(unknown)}")

    interval = refresh.get("interval")
    if not isinstance(interval, dict):
        raise ConfigError("refresh.interval must be an object of time fields.")
    bad = set(interval) - set(_INTERVAL_FIELDS)
    if bad:
        raise ConfigError(f"refresh.interval has unknown field(s): {sorted(bad)}")
    total = sum(_to_int(v, field=f"refresh.interval.{k}", allow_zero=True) for k, v in interval.items())
    if total <= 0:
        raise ConfigError("refresh.interval must be greater than 0.")

    _to_bool(refresh.get("run_at_start", True), field="refresh.run_at_start")
    for opt in ("misfire_grace_time", "jitter"):
        if refresh.get(opt) is not None:
            _to_int(refresh[opt], field=f"refresh.{opt}", allow_zero=True)

    if not isinstance(cfg.get("aggregator"), dict):
        raise ConfigError("'aggregator' must be an object.")


def _apply_top_level_defaults(cfg: dict[str, Any]) -> None:
    tz = cfg.get("timezone")
    if not isinstance(tz, str) or not tz.strip():
        cfg["timezone"] = os.environ.get("TZ", "UTC")

    refresh = cfg.get("refresh")
    if refresh is None:
        refresh = {}
    if isinstance(refresh, dict):
        refresh = dict(refresh)
        refresh.setdefault("interval", dict(DEFAULT_CONFIG["refresh"]["interval"]))
        if "run_at_start" in refresh:
            refresh["run_at_start"] = _to_bool(refresh["run_at_start"], field="refresh.run_at_start")
        else:
            refresh["run_at_start"] = True
    cfg["refresh"] = refresh

    if cfg.get("aggregator") is None:
        cfg["aggregator"] = {}


def _to_bool(value: Any, *, field: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        v = value.strip().lower()
        if v in {"1", "true", "yes", "on"}:
            return True
        if v in {"0", "false", "no", "off"}:
            return False
    raise ConfigError(f"'{field}' must be a boolean (or boolean-like string).")


def _to_int(value: Any, *, field: str, allow_zero: bool) -> int:
    if isinstance(value, bool):
        raise ConfigError(f"'{field}' must be an integer.")
    try:
        iv = int(value)
    except (TypeError, ValueError) as err:
        raise ConfigError(f"'{field}' must be an integer.") from err
    if iv < 0 or (iv == 0 and not allow_zero):
        raise ConfigError(f"'{field}' must be >= {'0' if allow_zero else '1'} (got {iv}).")
    return iv


def _read_any(path: str) -> dict[str, Any]:
    lower = path.lower()
    try:
        with open(path, encoding="utf-8") as f:
            text = f.read()
    except FileNotFoundError as e:
        raise ConfigError(f"Config file not found: {path}") from e
    except OSError as e:
        raise ConfigError(f"Failed to read config file: {path}: {e}") from e

    if lower.endswith((".yml", ".yaml")):
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {path}: {e}") from e
        data = {} if data is None else data
    else:
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise ConfigError(f"Invalid JSON in {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Top-level config in {path} must be a mapping/object.")
    return data
