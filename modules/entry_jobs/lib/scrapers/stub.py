from __future__ import annotations

from typing import Any

from ..config import SourceConfig
from ..errors import SourceFailure
from ..fetcher import FetchTier
from ..models import JobRecord, ScrapeResult
from ..retry import RetryController
from .base import BaseAdapter
from .registry import register


@register
class StubAdapter(BaseAdapter):
    """
    A zero-network adapter used for tests and dry-runs.

    SourceConfig.params may contain:
      - items: list[{title, company, apply_url, description?, location?,
                     salary_range?, posted?}]   # cards as the portal would show them
      - fail: str                               # OPTIONAL, raise SourceFailure with this reason
      - errors: list[str]                       # OPTIONAL, propagate to ScrapeResult

    Items missing title/company/apply_url are rejected like a real card.
    """

    kind = "stub"
    base_url = "https://stub.invalid"

    def build_url(self, page: int, cfg: SourceConfig) -> str:
        return f"{self.base_url}/search?page={page}"

    def scrape(
        self,
        cfg: SourceConfig,
        fetch_tier: FetchTier,
        retry: RetryController,
        *,
        deep_scrape_limit: int = 10,
    ) -> ScrapeResult:
        params: dict[str, Any] = dict(cfg.params or {})
        retry.check_cancelled()
        if params.get("fail"):
            raise SourceFailure(cfg.label, str(params["fail"]))

        result = ScrapeResult(source=cfg.label, pages_fetched=1)
        raw_items = params.get("items") or []
        if not isinstance(raw_items, list):
            raw_items = []

        for item in raw_items:
            if not isinstance(item, dict):
                result.cards_rejected += 1
                continue
            title = str(item.get("title") or "").strip()
            company = str(item.get("company") or "").strip()
            apply_url = self.resolve_url(str(item.get("apply_url") or item.get("url") or ""))
            if not title or not company or not apply_url:
                result.cards_rejected += 1
                continue
            result.records.append(
                JobRecord(
                    title=title,
                    company=company,
                    apply_url=apply_url,
                    source=cfg.label,
                    description=str(item.get("description") or ""),
                    location=str(item.get("location") or ""),
                    salary_range=str(item.get("salary_range") or ""),
                    posted_text=str(item.get("posted") or ""),
                )
            )

        errors = params.get("errors") or []
        if not isinstance(errors, list):
            errors = [str(errors)]
        result.errors.extend(str(e) for e in errors)
        return result
