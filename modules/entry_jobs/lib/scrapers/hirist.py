# modules/entry_jobs/lib/scrapers/hirist.py
from __future__ import annotations

from urllib.parse import urlencode

from ..config import SourceConfig
from .base import BaseAdapter
from .registry import register


@register
class HiristAdapter(BaseAdapter):
    """hirist.com (tech-only board). Heavy client rendering; slow default delay."""

    kind = "hirist"
    base_url = "https://www.hirist.com"

    card_selectors = (
        "div[class*='job-card']",
        ".job-card",
        ".job-listing",
        ".job-row",
        "div[class*='JobCard']",
        ".card-body",
    )
    title_selectors = (".job-title", "h3 a", ".title a", "a[class*='title']", "h3")
    company_selectors = (".company-name", ".recruiter-name", "div[class*='company']")
    location_selectors = (".job-location", ".location", "span[class*='location']")
    salary_selectors = (".salary", ".package", ".ctc", "span[class*='salary']")
    posted_selectors = (".posted-date", ".job-date", "[class*='date']")
    description_selectors = (".job-description", ".desc")
    experience_selectors = (".experience", ".exp-req", "span[class*='experience']")
    link_selectors = ("a[href*='/j/']", "a[href*='/job/']", ".job-title a", "a[class*='job-link']")

    def build_url(self, page: int, cfg: SourceConfig) -> str:
        params = {"q": cfg.search_query, "loc": cfg.location, "exp": f"0-{cfg.experience_max}", "page": page}
        return f"{self.base_url}/search?{urlencode(params)}"
