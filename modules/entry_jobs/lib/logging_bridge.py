"""
Structured event records for the aggregator, written through
service.logging_utils (which does the deep key redaction and the JSONL I/O).

Records here may carry scraped material (error reprs, page snippets, long
source lists), so long strings are clipped before they are written. When the
log file cannot be written the record goes to stdlib logging instead.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from service import logging_utils

log = logging.getLogger(__name__)

MAX_FIELD_CHARS = 2000
_CLIP_MARK = "...[clipped]"


def _clip(value: Any) -> Any:
    if isinstance(value, str) and len(value) > MAX_FIELD_CHARS:
        return value[: MAX_FIELD_CHARS - len(_CLIP_MARK)] + _CLIP_MARK
    if isinstance(value, dict):
        return {k: _clip(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_clip(v) for v in value]
    return value


def _emit(write: Callable[[dict[str, Any]], None], fallback: logging.Logger, level: int, record: dict[str, Any]) -> None:
    payload = _clip(record)
    try:
        write(payload)
    except (OSError, TypeError, ValueError):
        log.debug("structured log write failed for op=%s", record.get("op"), exc_info=True)
        fallback.log(level, "%s", logging_utils.redact(payload))


def activity(record: dict[str, Any]) -> None:
    _emit(logging_utils.write_activity_log, logging.getLogger("entry_jobs.activity"), logging.INFO, record)


def error(record: dict[str, Any]) -> None:
    """Error record; also echoed at WARNING so it shows on the console."""
    log.warning("%s/%s: %s", record.get("component", "?"), record.get("op", "?"), record.get("error", ""))
    _emit(logging_utils.write_error_log, logging.getLogger("entry_jobs.error"), logging.ERROR, record)
