# modules/entry_jobs/lib/scrapers/glassdoor.py
from __future__ import annotations

from urllib.parse import urlencode

from ..config import SourceConfig
from .base import BaseAdapter
from .registry import register


@register
class GlassdoorAdapter(BaseAdapter):
    """glassdoor.co.in keyword search, full-time + entry-level filters."""

    kind = "glassdoor"
    base_url = "https://www.glassdoor.co.in"

    card_selectors = (
        "li[data-test='job-listing']",
        "li[class*='JobsList_jobListItem']",
        "[data-test='job-listing']",
        ".jobContainer",
        ".jobListing",
        ".job-search__job",
    )
    title_selectors = (
        "a[data-test='job-title']",
        "a[class*='JobCard_jobTitle']",
        "[data-test='job-link']",
        ".job-title",
        ".jobTitle",
    )
    company_selectors = (
        "div[class*='EmployerProfile_employerName']",
        "[data-test='employer-name']",
        ".employerName",
        ".job-empolyer-name",
    )
    location_selectors = ("[data-test='emp-location']", "[data-test='job-location']", "div[class*='JobCard_location']", ".jobLocation", ".loc")
    salary_selectors = ("[data-test='detailSalary']", "div[class*='JobCard_salaryEstimate']", ".salaryText", ".pay-estimate")
    posted_selectors = ("[data-test='job-age']", "div[class*='JobCard_listingAge']", ".jobAge")
    description_selectors = ("div[class*='JobCard_jobDescriptionSnippet']", ".jobDescriptionSnippet", ".jobSnippet")
    link_selectors = ("a[data-test='job-title']", "a[data-test='job-link']", "a[href*='jobListing.htm']", "a.job-title")
    detail_description_selectors = ("div[class*='JobDetails_jobDescription']", "#JobDescriptionContainer")

    def build_url(self, page: int, cfg: SourceConfig) -> str:
        params = {
            "sc.keyword": cfg.search_query,
            "locT": "C",
            "locId": "-1",
            "locKeyword": cfg.location,
            "fromAge": cfg.date_filter_days,
            "jt": "fulltime",
            "empType": "FULLTIME",
            "seniorityType": "ENTRYLEVEL",
            "p": page,
        }
        return f"{self.base_url}/Job/jobs.htm?{urlencode(params)}"
