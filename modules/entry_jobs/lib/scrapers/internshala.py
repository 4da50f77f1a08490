# modules/entry_jobs/lib/scrapers/internshala.py
from __future__ import annotations

from urllib.parse import urlencode

from ..config import SourceConfig
from ..utils import slugify
from .base import BaseAdapter
from .registry import register


@register
class InternshalaAdapter(BaseAdapter):
    """internshala.com fresher jobs; statically rendered, paged via ?page=N."""

    kind = "internshala"
    base_url = "https://internshala.com"

    card_selectors = (".individual_internship", "div[id*='individual_internship']", ".internship_meta", ".job_card")
    title_selectors = (".job-internship-name", ".profile a", "h3 a", ".job-title")
    company_selectors = (".company-name", ".company a", ".company_name")
    location_selectors = (".locations a", ".location_link", ".location", "a[href*='location']")
    salary_selectors = (".stipend", ".salary", ".desktop-text")
    posted_selectors = (".status-inactive", ".status-success", ".status-info", ".status-container", "[class*='date']")
    description_selectors = (".about_job .text-container", ".internship_other_details_container", ".job_description")
    experience_selectors = (".experience", ".item_body")
    link_selectors = ("a.view_detail_button", ".profile a", "a.job-title-href", "a[href*='/job/']", "a[href*='/internship/']")
    detail_description_selectors = (".about_job .text-container", ".internship_details .text-container")

    def build_url(self, page: int, cfg: SourceConfig) -> str:
        path = f"/jobs/{slugify(cfg.search_query)}-jobs"
        if cfg.location and cfg.location.lower() != "india":
            path += f"-in-{slugify(cfg.location)}"
        return f"{self.base_url}{path}?{urlencode({'page': page})}"

    def _first_href(self, card, selectors):
        # Script-driven cards keep the detail path in data-href.
        return super()._first_href(card, selectors) or self.resolve_url(card.get("data-href"))
