# modules/entry_jobs/lib/scrapers/naukri.py
from __future__ import annotations

from urllib.parse import urlencode

from ..config import SourceConfig
from ..utils import slugify
from .base import BaseAdapter
from .registry import register


@register
class NaukriAdapter(BaseAdapter):
    """
    naukri.com search results. Pretty-path search with an experience band
    and the page number appended as a path suffix (-2, -3, ...).
    Mostly client-rendered; expect the rendered tier to do the work.
    """

    kind = "naukri"
    base_url = "https://www.naukri.com"

    card_selectors = (
        ".srp-jobtuple-wrapper",
        "article.jobTuple",
        ".jobTuple",
        ".job-tuple",
        "[class*='jobTuple']",
        ".job-card",
        "[data-job-id]",
        ".job-listing",
    )
    title_selectors = ("a.title", ".title", ".jobTitle", ".job-title", "h2", "h3", "[class*='title']", ".position")
    company_selectors = (".comp-name", "a.subTitle", ".companyInfo", ".company", ".employer", "[class*='company']")
    location_selectors = (".locWdth", ".loc-wrap", ".location", ".locationsContainer", ".job-location", "[class*='location']")
    salary_selectors = (".sal-wrap", ".salary", ".package", ".compensation", "[class*='salary']", "[class*='package']")
    posted_selectors = (".job-post-day", ".posted", ".posted-date", ".job-date", ".date", ".time-stamp", "[class*='date']")
    description_selectors = (".job-desc", ".job-description", ".job-summary", ".desc", ".snippet", "[class*='description']")
    experience_selectors = (".expwdth", ".exp-wrap", ".experience", "[class*='exp']")
    link_selectors = ("a.title", "a[href*='job-listings']", "a[href*='/jobs/']", ".apply-link", ".job-link", "a[class*='title']")
    detail_description_selectors = (".styles_JDC__dang-inner-html__h0K4t", ".job-desc", ".dang-inner-html")

    def build_url(self, page: int, cfg: SourceConfig) -> str:
        path = f"/{slugify(cfg.search_query)}-jobs"
        if cfg.location:
            path += "-" + slugify(cfg.location.replace("&", "and"))
        if cfg.experience_max > 0:
            path += f"-0-to-{cfg.experience_max}-years"
        if page > 1:
            path += f"-{page}"
        query = urlencode({
            "k": cfg.search_query,
            "l": cfg.location,
            "experienceMin": 0,
            "experienceMax": cfg.experience_max,
        })
        return f"{self.base_url}{path}?{query}"
