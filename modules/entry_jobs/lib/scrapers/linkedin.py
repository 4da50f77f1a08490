# modules/entry_jobs/lib/scrapers/linkedin.py
from __future__ import annotations

from urllib.parse import urlencode

from ..config import SourceConfig
from .base import BaseAdapter
from .registry import register


@register
class LinkedInAdapter(BaseAdapter):
    """
    Public (logged-out) LinkedIn job search. 25 results per page; filtered
    to the last 24h (f_TPR), entry level (f_E=2) and full time (f_JT=F).
    """

    kind = "linkedin"
    base_url = "https://www.linkedin.com"
    page_size = 25

    card_selectors = (
        ".jobs-search__results-list li",
        ".job-search-card",
        ".base-card",
        ".jobs-search-results__list-item",
        "li[class*='job']",
        "div[class*='job-card']",
        "article[class*='job']",
    )
    title_selectors = (
        ".job-search-card__title",
        "h3.base-search-card__title",
        ".base-card__title",
        "h3[class*='title']",
        "h3",
    )
    company_selectors = (
        ".job-search-card__company-name",
        "h4.base-search-card__subtitle",
        ".base-card__subtitle",
        "a[class*='company']",
        "h4",
    )
    location_selectors = (".job-search-card__location", "span[class*='location']")
    salary_selectors = (".job-search-card__salary", ".base-search-card__salary", "span[class*='salary']")
    posted_selectors = ("time", ".job-search-card__listdate", ".base-search-card__metadata time")
    description_selectors = (".job-search-card__snippet", ".base-card__full-description")
    link_selectors = ("a.base-card__full-link", "a[href*='/jobs/view/']", "a[href*='linkedin.com/jobs']")
    detail_description_selectors = (".show-more-less-html__markup", ".description__text")

    def build_url(self, page: int, cfg: SourceConfig) -> str:
        params = {
            "keywords": cfg.search_query,
            "location": cfg.location,
            "f_TPR": "r86400",
            "f_E": "2",
            "f_JT": "F",
            "start": (page - 1) * self.page_size,
        }
        return f"{self.base_url}/jobs/search?{urlencode(params)}"

    def parse_card(self, card, cfg):
        record = super().parse_card(card, cfg)
        # <time datetime="YYYY-MM-DD"> is more precise than the visible "2 days ago".
        node = card.select_one("time[datetime]")
        if node is not None and node.get("datetime"):
            record.posted_text = node["datetime"]
        return record
