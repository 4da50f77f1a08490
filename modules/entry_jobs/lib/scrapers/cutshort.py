# modules/entry_jobs/lib/scrapers/cutshort.py
from __future__ import annotations

from urllib.parse import urlencode

from ..config import SourceConfig
from ..utils import slugify
from .base import BaseAdapter
from .registry import register


@register
class CutshortAdapter(BaseAdapter):
    kind = "cutshort"
    base_url = "https://cutshort.io"

    card_selectors = (
        "div[class*='JobCard']",
        "div[class*='jobCard']",
        ".job-card",
        ".opportunity-card",
        "a[href*='/job/']",
    )
    title_selectors = (".job-title", "h3 a", "h2", "h3", ".title", "div[class*='title']")
    company_selectors = (".company-name", ".company", "div[class*='company']", "p[class*='company']")
    location_selectors = (".job-location", ".location", "div[class*='location']")
    salary_selectors = (".salary", ".compensation", "div[class*='salary']")
    posted_selectors = (".posted-date", ".job-date", "[class*='date']")
    description_selectors = (".job-description", ".description", ".skills", ".tech-stack")
    link_selectors = ("a[href*='/job/']", "a.job-link")

    def build_url(self, page: int, cfg: SourceConfig) -> str:
        params = {"location": cfg.location, "experience": f"0-{cfg.experience_max}", "page": page}
        return f"{self.base_url}/jobs/{slugify(cfg.search_query)}?{urlencode(params)}"
