# service/logging_utils.py
from __future__ import annotations

import contextlib
import datetime as _dt
import json
import os
import socket
import threading
from collections.abc import Iterable
from typing import Any

# Environment is read on every write so tests (and long-running processes)
# can repoint LOG_DIR without re-importing this module.
#   LOG_DIR                  base directory (default ./local/logs)
#   ACTIVITY_LOG_PREFIX      default "activity"
#   ERROR_LOG_PREFIX         default "error"
#   ACTIVITY_LOG_MAX_BYTES   size rotation threshold; <= 0 disables it

REDACTED = "***REDACTED***"

_DEFAULT_REDACT_KEYS = frozenset({
    "password",
    "token",
    "apikey",
    "api_key",
    "secret",
    "authorization",
    "cookie",
    "set-cookie",
    "proxy",
})

_HOSTNAME = socket.gethostname()
_WRITE_LOCK = threading.Lock()


# ---- Public API --------------------------------------------------------------


def write_activity_log(record: dict[str, Any]) -> None:
    """
    Append one structured activity record to today's JSONL file.
    Never mutates `record`; raises on unrecoverable I/O or serialization errors.
    """
    _write_jsonl(_log_path_for_today(_activity_prefix()), record)


def write_error_log(record: dict[str, Any]) -> None:
    """Same as write_activity_log, into the error file."""
    _write_jsonl(_log_path_for_today(_error_prefix()), record)


def get_activity_log_path() -> str:
    return _log_path_for_today(_activity_prefix())


def get_error_log_path() -> str:
    return _log_path_for_today(_error_prefix())


def redact(record: dict[str, Any], keys: Iterable[str] | None = None) -> dict[str, Any]:
    """
    Deep copy of `record` with values blanked wherever the KEY contains one of
    `keys` (case-insensitive substring match).
    """
    return _redact_deep(record, tuple(keys) if keys is not None else _DEFAULT_REDACT_KEYS)


# ---- Internal helpers --------------------------------------------------------


def _log_dir() -> str:
    return os.getenv("LOG_DIR", os.path.join("local", "logs"))


def _activity_prefix() -> str:
    return os.getenv("ACTIVITY_LOG_PREFIX", "activity")


def _error_prefix() -> str:
    return os.getenv("ERROR_LOG_PREFIX", "error")


def _max_bytes() -> int:
    try:
        return int(os.getenv("ACTIVITY_LOG_MAX_BYTES", "0"))
    except ValueError:
        return 0


def _log_path_for_today(prefix: str) -> str:
    today = _dt.date.today().isoformat()
    return os.path.join(_log_dir(), f"{prefix}-{today}.jsonl")


def _rotate_file_if_needed(path: str) -> None:
    limit = _max_bytes()
    if limit <= 0:
        return
    try:
        if os.path.getsize(path) < limit:
            return
    except FileNotFoundError:
        return
    stamp = _dt.datetime.now().strftime("%Y%m%d-%H%M%S")
    with contextlib.suppress(FileNotFoundError):
        os.replace(path, f"{path}.{stamp}")


def _scrub_bearer(value: str) -> str:
    if "bearer " not in value.lower():
        return value
    scheme, _, _rest = value.partition(" ")
    return f"{scheme} {REDACTED}"


def _redact_deep(value: Any, patterns: Iterable[str]) -> Any:
    if isinstance(value, dict):
        out: dict[Any, Any] = {}
        for k, v in value.items():
            if isinstance(k, str) and any(p in k.lower() for p in patterns):
                out[k] = REDACTED
            else:
                out[k] = _redact_deep(v, patterns)
        return out
    if isinstance(value, (list, tuple)):
        return [_redact_deep(v, patterns) for v in value]
    if isinstance(value, str):
        return _scrub_bearer(value)
    return value


def _with_metadata(record: dict[str, Any]) -> dict[str, Any]:
    out = dict(record)
    out.setdefault("ts", _dt.datetime.now(_dt.timezone.utc).isoformat().replace("+00:00", "Z"))
    meta = out.get("_meta") if isinstance(out.get("_meta"), dict) else {}
    out["_meta"] = {
        **meta,
        "host": _HOSTNAME,
        "pid": os.getpid(),
        "thread": threading.current_thread().name,
    }
    return out


def _write_jsonl(path: str, record: dict[str, Any]) -> None:
    """
    Redact, stamp, serialize, then append one line with O_APPEND.
    Serialization happens before any file work; one retry on OSError.
    """
    payload = _with_metadata(_redact_deep(record, _DEFAULT_REDACT_KEYS))
    data = (json.dumps(payload, ensure_ascii=False, separators=(",", ":"), default=str) + "\n").encode("utf-8")

    def _append_once() -> None:
        os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
        _rotate_file_if_needed(path)
        fd = os.open(path, os.O_CREAT | os.O_APPEND | os.O_WRONLY, 0o644)
        try:
            os.write(fd, data)
        finally:
            os.close(fd)

    with _WRITE_LOCK:
        try:
            _append_once()
        except OSError:
            _append_once()
