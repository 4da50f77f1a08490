# tests/test_logging_utils.py
import json
import os

from modules.entry_jobs.lib import logging_bridge
from service import logging_utils as L


def _read_lines(path):
    with open(path, encoding="utf-8") as f:
        return [json.loads(line) for line in f if line.strip()]


def test_activity_record_lands_in_log_dir():
    L.write_activity_log({"component": "tests", "op": "ping", "n": 1})
    path = L.get_activity_log_path()

    assert path.startswith(os.environ["LOG_DIR"])
    assert os.path.basename(path).startswith("activity-test-")
    (rec,) = _read_lines(path)
    assert rec["op"] == "ping"
    assert rec["ts"].endswith("Z")
    assert set(rec["_meta"]) == {"host", "pid", "thread"}


def test_secrets_are_redacted_deeply():
    original = {"headers": {"Authorization": "Bearer abc", "X-Api-Token": "t"}, "note": "Bearer xyz", "ok": [1, 2]}
    out = L.redact(original)

    assert out["headers"]["Authorization"] == L.REDACTED
    assert out["headers"]["X-Api-Token"] == L.REDACTED
    assert out["note"] == f"Bearer {L.REDACTED}"
    assert out["ok"] == [1, 2]
    assert original["headers"]["Authorization"] == "Bearer abc"


def test_error_records_go_to_error_file():
    logging_bridge.error({"component": "tests", "op": "boom", "password": "hunter2"})
    (rec,) = _read_lines(L.get_error_log_path())
    assert rec["op"] == "boom"
    assert rec["password"] == L.REDACTED


def test_rotation_by_size(monkeypatch):
    monkeypatch.setenv("ACTIVITY_LOG_MAX_BYTES", "10")
    L.write_activity_log({"op": "first"})
    L.write_activity_log({"op": "second"})

    rotated = [n for n in os.listdir(os.environ["LOG_DIR"]) if n.startswith("activity-test-") and not n.endswith(".jsonl")]
    assert len(rotated) == 1
    assert [r["op"] for r in _read_lines(L.get_activity_log_path())] == ["second"]


def test_unserializable_values_are_stringified():
    L.write_activity_log({"op": "obj", "value": object()})
    (rec,) = _read_lines(L.get_activity_log_path())
    assert rec["value"].startswith("<object object")
