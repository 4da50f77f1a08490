# modules/entry_jobs/lib/scrapers/jobsora.py
from __future__ import annotations

from urllib.parse import urlencode

from ..config import SourceConfig
from ..utils import slugify
from .base import BaseAdapter
from .registry import register


@register
class JobsoraAdapter(BaseAdapter):
    """in.jobsora.com aggregator pages (location-first path)."""

    kind = "jobsora"
    base_url = "https://in.jobsora.com"

    card_selectors = (".vacancy", ".c-job-list__item", ".job-item", ".job-card", ".search-result")
    title_selectors = (".vacancy__title", ".c-job-list__title", ".job-title a", "h2 a", "h3 a", ".title a", "h2", "h3")
    company_selectors = (".vacancy__company", ".c-job-list__company", ".company-name", ".employer-name", "[class*='employer']")
    location_selectors = (".vacancy__location", ".c-job-list__location", ".job-location", ".location")
    salary_selectors = (".vacancy__salary", ".c-job-list__salary", ".salary", ".wage")
    posted_selectors = (".vacancy__date", ".c-job-list__date", ".posted-date", ".job-date", "[class*='date']")
    description_selectors = (".vacancy__description", ".c-job-list__desc", ".job-description", ".description")
    link_selectors = ("a.vacancy__title", "a.c-job-list__title", "a[href*='/job/']", "a[href*='/vacancy/']", "a[href]")

    def build_url(self, page: int, cfg: SourceConfig) -> str:
        location = slugify(cfg.location or "india")
        params = {"experience": "entry_level", "date_posted": cfg.date_filter_days, "page": page}
        return f"{self.base_url}/jobs-in-{location}/{slugify(cfg.search_query)}?{urlencode(params)}"
