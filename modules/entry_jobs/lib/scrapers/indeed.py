# modules/entry_jobs/lib/scrapers/indeed.py
from __future__ import annotations

from urllib.parse import urlencode

from ..config import SourceConfig
from .base import BaseAdapter
from .registry import register


@register
class IndeedAdapter(BaseAdapter):
    """indeed.co.in: 10 results per page, `start` is the result offset."""

    kind = "indeed"
    base_url = "https://www.indeed.co.in"
    page_size = 10

    card_selectors = (
        ".jobsearch-ResultsList .job_seen_beacon",
        ".job_seen_beacon",
        "[class*='job_seen_beacon']",
        ".job_listing",
        ".resultContent",
        "[class*='jobCard']",
    )
    title_selectors = ("h2.jobTitle a", "a.jcs-JobTitle", ".jobTitle span", "a[id^='job_']", "h2")
    company_selectors = ("[data-testid='company-name']", ".companyName", ".company")
    location_selectors = ("[data-testid='text-location']", ".companyLocation")
    salary_selectors = (".salary-snippet-container", ".metadata.salary-snippet-container", "[class*='salary']")
    posted_selectors = ("[data-testid='myJobsStateDate']", ".date", ".my-job-date")
    description_selectors = (".job-snippet", ".jobCardShelfContainer", ".job-description")
    link_selectors = ("h2.jobTitle a", "a.jcs-JobTitle", "a[id^='job_']", "a[href*='/rc/clk']", "a[href*='viewjob']")
    detail_description_selectors = ("#jobDescriptionText", ".jobsearch-jobDescriptionText")

    def build_url(self, page: int, cfg: SourceConfig) -> str:
        params = {
            "q": cfg.search_query,
            "l": cfg.location,
            "start": (page - 1) * self.page_size,
            "fromage": cfg.date_filter_days,
            "explvl": "ENTRY_LEVEL",
        }
        return f"{self.base_url}/jobs?{urlencode(params)}"
