# modules/entry_jobs/lib/scrapers/freshersworld.py
from __future__ import annotations

from urllib.parse import urlencode

from ..config import SourceConfig
from ..utils import slugify
from .base import BaseAdapter
from .registry import register


@register
class FreshersworldAdapter(BaseAdapter):
    """freshersworld.com: 20 results per page, addressed by offset."""

    kind = "freshersworld"
    base_url = "https://www.freshersworld.com"
    page_size = 20

    card_selectors = (
        ".job-container",
        "div[class*='job-block']",
        "article.job",
        ".job-posting",
        ".job-card",
        "div[class*='job_listing']",
        ".list-container",
    )
    title_selectors = (".job-new-title", "h2.job-title", ".job-tittle a", ".job-title a", ".job-title", ".job_head h2", "h3 a")
    company_selectors = (".latest-jobs-title", ".company-name", ".job-company", ".comp-name", ".company_info a", ".companyName")
    location_selectors = (".job-location", ".location", ".job_loc", ".location_info", ".jobLocation")
    salary_selectors = (".salary", ".package", ".salary_info", ".pay", ".compensation", ".salaryText")
    posted_selectors = (".ago-text", ".posted-date", ".job-posted-date", ".job-date", ".post-date", ".date")
    description_selectors = (".desc", ".qualification", ".qualifications", ".job-description")
    experience_selectors = (".experience", ".exp")
    link_selectors = ("a[href*='jobdetails']", "a[href*='job-detail']", ".job-title a", "h2 a", "h3 a", "a[href*='/jobs/']")

    def build_url(self, page: int, cfg: SourceConfig) -> str:
        location = slugify(cfg.location or "india")
        params = {"offset": (page - 1) * self.page_size, "page": page}
        return f"{self.base_url}/jobs/jobsearch/{slugify(cfg.search_query)}-jobs-in-{location}?{urlencode(params)}"
