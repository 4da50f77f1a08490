# tests/test_adapters.py
import pytest

from modules.entry_jobs.lib.config import SourceConfig
from modules.entry_jobs.lib.errors import SourceFailure, TransientFetchError
from modules.entry_jobs.lib.fetcher import FetchOutcome, FetchResult
from modules.entry_jobs.lib.scrapers import PORTAL_KINDS, registry
from modules.entry_jobs.lib.scrapers.indeed import IndeedAdapter
from modules.entry_jobs.lib.scrapers.internshala import InternshalaAdapter
from modules.entry_jobs.lib.scrapers.naukri import NaukriAdapter
from tests.fakes import FakeFetchTier, ok_page, rate_limited


def _card(n, company="Acme", href=None):
    company_html = f"<p class='company-name'>{company} {n}</p>" if company else ""
    href = href if href is not None else f"/job/detail/backend-developer-{n}"
    return (
        "<div class='individual_internship'>"
        f"<h3 class='job-internship-name'>Backend Developer {n}</h3>"
        f"{company_html}"
        "<div class='locations'><a>Pune</a></div>"
        "<span class='status-success'>2 days ago</span>"
        f"<a class='view_detail_button' href='{href}'>View</a>"
        "</div>"
    )


def _listing(*cards):
    return "<html><body>" + "".join(cards) + "</body></html>"


def _cfg(**kw):
    base = {"kind": "internshala", "max_pages": 3, "max_retries": 2, "request_delay_ms": 0}
    base.update(kw)
    return SourceConfig(**base)


def test_every_portal_is_registered():
    assert set(PORTAL_KINDS) == {
        "naukri", "indeed", "linkedin", "internshala", "glassdoor", "shine",
        "wellfound", "freshersworld", "hirist", "cutshort", "jobsora",
    }
    assert registry.get("NAUKRI") is NaukriAdapter
    with pytest.raises(KeyError):
        registry.get("monster")


def test_naukri_url_has_experience_band_and_page_suffix():
    cfg = SourceConfig(kind="naukri")
    assert NaukriAdapter().build_url(1, cfg).startswith(
        "https://www.naukri.com/software-engineer-jobs-india-0-to-1-years?"
    )
    page2 = NaukriAdapter().build_url(2, cfg)
    assert "/software-engineer-jobs-india-0-to-1-years-2?" in page2
    assert "experienceMax=1" in page2


def test_indeed_url_uses_result_offset():
    url = IndeedAdapter().build_url(3, SourceConfig(kind="indeed", search_query="python developer", date_filter_days=1))
    assert url.startswith("https://www.indeed.co.in/jobs?")
    assert "q=python+developer" in url
    assert "start=20" in url
    assert "fromage=1" in url


def test_internshala_url_skips_country_wide_location():
    adapter = InternshalaAdapter()
    assert adapter.build_url(1, _cfg()) == "https://internshala.com/jobs/software-engineer-jobs?page=1"
    assert adapter.build_url(2, _cfg(location="Pune")) == "https://internshala.com/jobs/software-engineer-jobs-in-pune?page=2"


@pytest.mark.parametrize(
    "href, expected",
    [
        ("/job/detail/1", "https://internshala.com/job/detail/1"),
        ("job/detail/2", "https://internshala.com/job/detail/2"),
        ("https://other.example/x", "https://other.example/x"),
        ("//cdn.example/y", "https://cdn.example/y"),
        ("javascript:void(0)", None),
        ("mailto:hr@example.com", None),
        ("#top", None),
        ("", None),
    ],
)
def test_resolve_url(href, expected):
    assert InternshalaAdapter().resolve_url(href) == expected


def test_parse_page_rejects_incomplete_cards():
    html = _listing(_card(1), _card(2, company=""), _card(3, href="javascript:void(0)"), _card(4))
    records, seen, rejected = InternshalaAdapter().parse_page(html, _cfg(source="ishala"))

    assert seen == 4
    assert rejected == 2
    assert [r.title for r in records] == ["Backend Developer 1", "Backend Developer 4"]
    first = records[0]
    assert first.company == "Acme 1"
    assert first.apply_url == "https://internshala.com/job/detail/backend-developer-1"
    assert first.location == "Pune"
    assert first.posted_text == "2 days ago"
    assert first.source == "ishala"


def test_pagination_stops_at_empty_page(retry_controller):
    adapter, cfg = InternshalaAdapter(), _cfg()
    tier = FakeFetchTier({
        adapter.build_url(1, cfg): ok_page("p1", _listing(_card(1), _card(2))),
        adapter.build_url(2, cfg): FetchResult(FetchOutcome.PARSE_EMPTY, "p2", "<html></html>", status=200),
    })

    result = adapter.scrape(cfg, tier, retry_controller)

    assert len(result.records) == 2
    assert result.pages_fetched == 2
    assert result.errors == []
    assert adapter.build_url(3, cfg) not in tier.calls


def test_later_page_failure_keeps_earlier_records(retry_controller):
    adapter, cfg = InternshalaAdapter(), _cfg()
    tier = FakeFetchTier({
        adapter.build_url(1, cfg): ok_page("p1", _listing(_card(1))),
        adapter.build_url(2, cfg): rate_limited,
        adapter.build_url(3, cfg): ok_page("p3", _listing(_card(3))),
    })

    result = adapter.scrape(cfg, tier, retry_controller)

    assert [r.title for r in result.records] == ["Backend Developer 1", "Backend Developer 3"]
    assert len(result.errors) == 1
    assert result.errors[0].startswith("page 2: rate_limited")
    assert tier.calls.count(adapter.build_url(2, cfg)) == cfg.max_retries


def test_first_page_not_found_is_source_failure(retry_controller):
    with pytest.raises(SourceFailure) as excinfo:
        InternshalaAdapter().scrape(_cfg(source="ishala"), FakeFetchTier(), retry_controller)
    assert excinfo.value.source == "ishala"
    assert "not_found" in excinfo.value.reason


def test_deep_scrape_fills_thin_descriptions_from_detail_page(retry_controller):
    adapter, cfg = InternshalaAdapter(), _cfg(max_pages=1, deep_scrape=True)
    detail_url = "https://internshala.com/job/detail/backend-developer-1"
    about = "Design REST services, write tests and review pull requests with senior engineers. " * 2
    tier = FakeFetchTier({
        adapter.build_url(1, cfg): ok_page("p1", _listing(_card(1))),
        detail_url: ok_page(detail_url, f"<html><body><div class='about_job'><div class='text-container'>{about}</div></div></body></html>"),
    })

    result = adapter.scrape(cfg, tier, retry_controller)

    assert result.records[0].description == about.strip()
    # detail pages never go to the rendered tier
    assert tier.render_flags[tier.calls.index(detail_url)] is False


def test_deep_scrape_failure_is_recorded_not_raised(retry_controller):
    adapter, cfg = InternshalaAdapter(), _cfg(max_pages=1, deep_scrape=True)
    tier = FakeFetchTier({adapter.build_url(1, cfg): ok_page("p1", _listing(_card(1)))})

    result = adapter.scrape(cfg, tier, retry_controller)

    assert len(result.records) == 1
    assert result.errors and result.errors[0].startswith("detail https://internshala.com/job/detail/")


def test_detail_fetch_raises_transient_error_after_retries(retry_controller):
    adapter, cfg = InternshalaAdapter(), _cfg(max_pages=1)
    detail_url = "https://internshala.com/job/detail/backend-developer-1"
    tier = FakeFetchTier(default=rate_limited)

    with pytest.raises(TransientFetchError) as excinfo:
        adapter.fetch_detail(detail_url, cfg, tier, retry_controller)

    assert excinfo.value.url == detail_url
    assert excinfo.value.outcome == "rate_limited"
    assert tier.calls == [detail_url] * cfg.max_retries


def test_rate_limited_detail_page_is_recorded_and_record_kept(retry_controller):
    adapter, cfg = InternshalaAdapter(), _cfg(max_pages=1, deep_scrape=True)
    detail_url = "https://internshala.com/job/detail/backend-developer-1"
    tier = FakeFetchTier({
        adapter.build_url(1, cfg): ok_page("p1", _listing(_card(1))),
        detail_url: rate_limited,
    })

    result = adapter.scrape(cfg, tier, retry_controller)

    assert [r.title for r in result.records] == ["Backend Developer 1"]
    assert result.errors == [f"detail {detail_url}: rate_limited after 2 attempt(s)"]
