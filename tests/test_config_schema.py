# tests/test_config_schema.py
import json

import pytest

from service import config_schema
from service.config_schema import ConfigError


def test_builtin_default_when_no_path(monkeypatch):
    monkeypatch.delenv("TZ", raising=False)
    cfg = config_schema.load_config()
    assert cfg["timezone"] == "UTC"
    assert cfg["refresh"] == {"interval": {"hours": 1}, "run_at_start": True}
    assert cfg["aggregator"] == {}
    config_schema.validate(cfg)


def test_config_path_env_is_honoured(tmp_path, monkeypatch):
    path = tmp_path / "service.json"
    path.write_text(json.dumps({"timezone": "Asia/Kolkata", "refresh": {"interval": {"minutes": 30}}}), encoding="utf-8")
    monkeypatch.setenv("CONFIG_PATH", str(path))

    cfg = config_schema.load_config()
    assert cfg["timezone"] == "Asia/Kolkata"
    assert cfg["refresh"]["interval"] == {"minutes": 30}
    assert cfg["refresh"]["run_at_start"] is True
    assert cfg["aggregator"] == {}


def test_yaml_config_with_aggregator_block(tmp_path):
    path = tmp_path / "service.yaml"
    path.write_text(
        "refresh:\n"
        "  interval: {hours: 2}\n"
        "  run_at_start: 'no'\n"
        "  jitter: 30\n"
        "aggregator:\n"
        "  freshness_days: 5\n"
        "  sources:\n"
        "    - kind: naukri\n",
        encoding="utf-8",
    )
    cfg = config_schema.load_config(str(path))
    config_schema.validate(cfg)
    assert cfg["refresh"]["run_at_start"] is False
    assert cfg["aggregator"]["sources"] == [{"kind": "naukri"}]


@pytest.mark.parametrize(
    "cfg, needle",
    [
        ({"jobs": []}, "Unknown top-level"),
        ({"refresh": {"interval": {"hours": 0}}}, "greater than 0"),
        ({"refresh": {"interval": {"fortnights": 1}}}, "unknown field"),
        ({"refresh": {"interval": {"hours": -1}}}, ">= 0"),
        ({"refresh": {"interval": {"hours": True}}}, "integer"),
        ({"refresh": {"interval": {"hours": 1}, "cron": {}}}, "refresh has unknown"),
        ({"refresh": {"interval": {"hours": 1}, "jitter": "soon"}}, "refresh.jitter"),
        ({"refresh": {"interval": {"hours": 1}}, "aggregator": []}, "'aggregator' must be an object"),
        ({"refresh": "hourly"}, "'refresh' must be an object"),
        ({"timezone": 5, "refresh": {"interval": {"hours": 1}}}, "timezone"),
    ],
)
def test_validate_rejects(cfg, needle):
    cfg.setdefault("aggregator", {})
    with pytest.raises(ConfigError) as excinfo:
        config_schema.validate(cfg)
    assert needle in str(excinfo.value)


def test_unreadable_files(tmp_path):
    with pytest.raises(ConfigError):
        config_schema.load_config(str(tmp_path / "missing.json"))

    bad = tmp_path / "bad.yaml"
    bad.write_text("refresh: [unclosed", encoding="utf-8")
    with pytest.raises(ConfigError):
        config_schema.load_config(str(bad))

    listy = tmp_path / "list.json"
    listy.write_text("[]", encoding="utf-8")
    with pytest.raises(ConfigError):
        config_schema.load_config(str(listy))


def test_run_at_start_must_be_boolean_like(tmp_path):
    path = tmp_path / "service.json"
    path.write_text(json.dumps({"refresh": {"run_at_start": "maybe"}}), encoding="utf-8")
    with pytest.raises(ConfigError):
        config_schema.load_config(str(path))
