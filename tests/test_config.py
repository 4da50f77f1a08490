# tests/test_config.py
import json

import pytest

from modules.entry_jobs.lib.config import PORTAL_DEFAULTS, ConfigError, Settings


def test_defaults_cover_every_portal():
    s = Settings.from_env_and_kwargs({})
    kinds = [sc.kind for sc in s.enabled_sources()]
    assert kinds == list(PORTAL_DEFAULTS)
    assert s.freshness_days == 7
    assert s.max_workers == 3
    assert s.rendered_tier is True

    indeed = next(sc for sc in s.enabled_sources() if sc.kind == "indeed")
    assert indeed.default_recency_days == 1
    assert indeed.request_delay_ms == 5000


def test_camel_case_aliases_and_mapping_shape():
    s = Settings.from_env_and_kwargs({
        "sources": {
            "naukri": {"searchQuery": "data analyst", "maxPages": 1, "deepScrapingEnabled": "yes"},
            "shine": {"enabled": False},
        }
    })
    naukri, shine = s.selected_sources()
    assert naukri.search_query == "data analyst"
    assert naukri.max_pages == 1
    assert naukri.deep_scrape is True
    assert shine.enabled is False
    assert [sc.kind for sc in s.enabled_sources()] == ["naukri"]


def test_yaml_sources_file(tmp_path):
    path = tmp_path / "sources.yaml"
    path.write_text(
        "- kind: internshala\n"
        "  location: Pune\n"
        "  request_delay_ms: 0\n"
        "- kind: stub\n"
        "  source: offline\n"
        "  params:\n"
        "    items: []\n",
        encoding="utf-8",
    )
    s = Settings.from_env_and_kwargs({"sources_path": str(path)})
    labels = [sc.label for sc in s.enabled_sources()]
    assert labels == ["internshala", "offline"]
    assert s.enabled_sources()[0].location == "Pune"


def test_json_sources_file_wins_over_inline(tmp_path):
    path = tmp_path / "sources.json"
    path.write_text(json.dumps([{"kind": "hirist"}]), encoding="utf-8")
    s = Settings.from_env_and_kwargs({"sources_path": str(path), "sources": [{"kind": "naukri"}]})
    only = s.enabled_sources()
    assert [sc.kind for sc in only] == ["hirist"]
    assert only[0].max_pages == 2


@pytest.mark.parametrize(
    "kwargs, needle",
    [
        ({"sources": [{"kind": "monster"}]}, "Unknown source kind"),
        ({"sources": [{"kind": "naukri", "max_pages": 0}]}, "max_pages"),
        ({"sources": [{"kind": "naukri", "request_delay_ms": -1}]}, "request_delay_ms"),
        ({"sources": [{"kind": "naukri", "colour": "blue"}]}, "unknown field"),
        ({"sources": [{"kind": "stub"}, {"kind": "stub"}]}, "Duplicate source label"),
        ({"sources": [{"search_query": "x"}]}, "requires 'kind'"),
        ({"sources": "naukri"}, "Expected a list"),
        ({"max_workers": 0}, "max_workers"),
        ({"max_workers": "many"}, "integer"),
        ({"quality_threshold": 1.5}, "quality_threshold"),
        ({"sources_path": "/nonexistent/sources.json"}, "not found"),
    ],
)
def test_invalid_settings_raise(kwargs, needle):
    with pytest.raises(ConfigError) as excinfo:
        Settings.from_env_and_kwargs(kwargs)
    assert needle in str(excinfo.value)


def test_broken_sources_file(tmp_path):
    path = tmp_path / "sources.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(ConfigError):
        Settings.from_env_and_kwargs({"sources_path": str(path)})
