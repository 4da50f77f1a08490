# tests/test_cli.py
import json

import pytest

from service import cli
from tests.fakes import stub_item


@pytest.fixture
def config_file(tmp_path):
    def _write(aggregator):
        path = tmp_path / "service.json"
        path.write_text(
            json.dumps({"refresh": {"interval": {"hours": 1}}, "aggregator": aggregator}),
            encoding="utf-8",
        )
        return str(path)

    return _write


STUB_AGGREGATOR = {
    "rendered_tier": False,
    "retry_base_ms": 0,
    "retry_jitter_ms": 0,
    "sources": [
        {"kind": "stub", "source": "A", "params": {"items": [stub_item(1), stub_item(2), stub_item(1)]}},
        {"kind": "stub", "source": "B", "params": {"fail": "portal down"}},
    ],
}


def test_validate_config_ok(config_file, capsys):
    rc = cli.main(["--config", config_file(STUB_AGGREGATOR), "validate-config"])
    assert rc == 0
    assert "OK: configuration is valid (2 enabled source(s))." in capsys.readouterr().out


def test_validate_config_reports_bad_source(config_file, capsys):
    rc = cli.main(["--config", config_file({"sources": [{"kind": "monster"}]}), "validate-config"])
    assert rc == 1
    assert "Unknown source kind" in capsys.readouterr().err


def test_list_sources_prints_table(config_file, capsys):
    rc = cli.main(["--config", config_file({"sources": {"naukri": {}, "shine": {"enabled": False}}}), "list-sources"])
    out = capsys.readouterr().out
    assert rc == 0
    assert "| SOURCE" in out
    assert "enabled; kind=naukri" in out
    assert "disabled; kind=shine" in out


def test_run_prints_summary(config_file, capsys):
    rc = cli.main(["--config", config_file(STUB_AGGREGATOR), "run"])
    out = capsys.readouterr().out
    assert rc == 0
    assert "ok, 3 job(s)" in out
    assert "FAILED: portal down" in out
    assert "DONE: 2 listing(s) published; 1 duplicate(s)" in out


def test_run_json_with_kwargs_override(config_file, capsys):
    rc = cli.main([
        "--config", config_file(STUB_AGGREGATOR),
        "run", "--json",
        "--kwargs", 'sources=[{"kind": "stub", "params": {"items": [{"title": "QA Intern", "company": "Beta", "apply_url": "https://b.example/1"}]}}]',
    ])
    payload = json.loads(capsys.readouterr().out)
    assert rc == 0
    assert payload["total"] == 1
    assert payload["records"][0]["job_type"] == "INTERNSHIP"
    assert payload["generated_at"] is not None
    assert payload["stats"]["stub"]["succeeded"] is True


def test_run_rejects_malformed_kwargs(config_file, capsys):
    rc = cli.main(["--config", config_file(STUB_AGGREGATOR), "run", "--kwargs", "no-equals-sign"])
    assert rc == 1
    assert "key=value" in capsys.readouterr().err


def test_parse_kv_pairs_decodes_json_values():
    assert cli._parse_kv_pairs(["max_workers=4", "skip_network=true", "sources_path=/tmp/s.yaml"]) == {
        "max_workers": 4,
        "skip_network": True,
        "sources_path": "/tmp/s.yaml",
    }
