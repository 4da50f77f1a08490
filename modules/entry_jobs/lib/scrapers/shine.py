# modules/entry_jobs/lib/scrapers/shine.py
from __future__ import annotations

from urllib.parse import urlencode

from ..config import SourceConfig
from ..utils import slugify
from .base import BaseAdapter
from .registry import register


@register
class ShineAdapter(BaseAdapter):
    kind = "shine"
    base_url = "https://www.shine.com"

    card_selectors = (
        "div[class*='jobCard_jobCard']",
        ".jobCard",
        ".job_listing",
        ".job-card",
        ".search_listing",
        "div[itemtype='http://schema.org/JobPosting']",
    )
    title_selectors = ("h2[itemprop='name'] a", ".jobCard_pReplaceH2", ".job_title a", "h2 a", "h3 a", "a[class*='title']")
    company_selectors = ("div[class*='jobCard_jobCard_cName']", ".jobCard_companyName", ".company_name", ".company-name")
    location_selectors = ("div[class*='jobCard_locationIcon']", ".jobCard_location", ".job_location", ".location")
    salary_selectors = (".jobCard_salary", ".salary", ".package")
    posted_selectors = ("div[class*='jobCard_jobCard_features'] span", ".jobCard_date", ".posted-date", "[class*='date']")
    description_selectors = (".jobCard_jobDescription", ".job_description", ".description")
    experience_selectors = ("div[class*='jobCard_jobIcon']", ".jobCard_experience", ".experience", ".exp-req")
    link_selectors = ("a[href*='/jobs/']", "a[href*='/job-detail/']", ".job_title a", "a[class*='jobCard']")

    def build_url(self, page: int, cfg: SourceConfig) -> str:
        params = {
            "experienceMax": cfg.experience_max,
            "location": cfg.location,
            "datePosted": cfg.date_filter_days,
            "jobType": "full_time",
            "page": page,
        }
        return f"{self.base_url}/job-search/{slugify(cfg.search_query)}-jobs?{urlencode(params)}"
