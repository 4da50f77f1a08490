# modules/entry_jobs/lib/scrapers/wellfound.py
from __future__ import annotations

from urllib.parse import urlencode

from ..config import SourceConfig
from .base import BaseAdapter
from .registry import register


@register
class WellfoundAdapter(BaseAdapter):
    """
    wellfound.com (AngelList Talent). Results are grouped per startup, so a
    card's company comes from the enclosing startup block when the job row
    itself does not carry one.
    """

    kind = "wellfound"
    base_url = "https://wellfound.com"

    card_selectors = (
        "[data-test='JobSearchResult']",
        "div[class*='styles_jobListing']",
        ".job-listing",
        ".startup-job",
        "[class*='JobCard']",
        "div[class*='styles_component']",
    )
    title_selectors = ("[data-test='JobTitle']", "a[class*='jobTitle']", ".job-title", "h2 a", "h3 a", "a[class*='title']")
    company_selectors = ("[data-test='CompanyName']", "a[class*='companyName']", ".company-name", ".startup-name", "h2")
    location_selectors = ("[data-test='Location']", "span[class*='location']", ".job-location", ".location")
    salary_selectors = ("[data-test='Compensation']", "span[class*='compensation']", ".salary", ".compensation")
    posted_selectors = ("[data-test='PostedDate']", "span[class*='posted']", ".posted-date", "[class*='date']")
    description_selectors = ("[data-test='Description']", ".job-description", ".description")
    link_selectors = ("a[data-test='JobLink']", "a[href*='/jobs/']", "a[href*='/l/']")

    def build_url(self, page: int, cfg: SourceConfig) -> str:
        params = {
            "q": cfg.search_query,
            "location": cfg.location,
            "experience": "entry_level",
            "type": "full_time",
            "remote": "true",
            "page": page,
        }
        return f"{self.base_url}/jobs?{urlencode(params)}"

    def extract_company(self, card):
        name = super().extract_company(card)
        if name:
            return name
        block = card.find_parent(attrs={"data-test": "StartupResult"})
        return self._first_text(block, self.company_selectors) if block is not None else ""
