from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Sequence
from urllib.parse import urljoin, urlsplit

from bs4 import BeautifulSoup
from bs4.element import Tag

from .. import enricher
from ..config import SourceConfig
from ..errors import ParseError, SourceFailure, TransientFetchError
from ..fetcher import FetchOutcome, FetchResult, FetchTier
from ..models import JobRecord, ScrapeResult
from ..retry import RetryController
from ..utils import clean_text

log = logging.getLogger(__name__)

DEEP_SCRAPE_MIN_DESCRIPTION = 80


class BaseAdapter(ABC):
    """
    One portal's mapping from search pages to canonical JobRecords.

    Subclasses set `kind`, `base_url`, the card selector list (tried in
    priority order; the first that matches anything wins) and the per-field
    selector lists, and implement `build_url`. Portals with unusual markup
    override `parse_card`.

    Contract:
      - scrape() returns a ScrapeResult for the source; it raises
        SourceFailure when the first page cannot be fetched at all.
      - Do NOT normalize dates, classify, enrich or dedupe here; the
        orchestrator runs those stages over the merged set.
    """

    # Concrete subclasses MUST set this to a stable string, e.g. "naukri"
    kind: str = ""
    base_url: str = ""

    card_selectors: tuple[str, ...] = ()
    title_selectors: tuple[str, ...] = ("h2 a", "h3 a", ".job-title", ".title", "h2", "h3")
    company_selectors: tuple[str, ...] = (".company-name", ".company", "[class*='company']")
    location_selectors: tuple[str, ...] = (".location", ".job-location", "[class*='location']")
    salary_selectors: tuple[str, ...] = (".salary", ".package", "[class*='salary']")
    posted_selectors: tuple[str, ...] = (".posted-date", ".job-date", "[class*='date']")
    description_selectors: tuple[str, ...] = (".job-description", ".description")
    experience_selectors: tuple[str, ...] = ()
    link_selectors: tuple[str, ...] = ("a[href]",)
    detail_description_selectors: tuple[str, ...] = (".job-description", "#job-description", ".description")

    # ---- URL building ----
    @abstractmethod
    def build_url(self, page: int, cfg: SourceConfig) -> str:
        """Search URL for a 1-based page index."""
        raise NotImplementedError

    def resolve_url(self, href: str | None) -> str | None:
        """
        Relative paths resolve against base_url; absolute http(s) URLs pass
        through unchanged. javascript:/mailto:/fragment-only links are rejected.
        """
        href = (href or "").strip()
        if not href or href.startswith("#"):
            return None
        lowered = href.lower()
        if lowered.startswith(("javascript:", "mailto:", "tel:")):
            return None
        if urlsplit(href).scheme in ("http", "https"):
            return href
        if href.startswith("//"):
            return "https:" + href
        return urljoin(self.base_url.rstrip("/") + "/", href)

    # ---- parsing ----
    def find_cards(self, soup: BeautifulSoup) -> list[Tag]:
        for sel in self.card_selectors:
            cards = soup.select(sel)
            if cards:
                return cards
        return []

    def _first_text(self, card: Tag, selectors: Sequence[str]) -> str:
        for sel in selectors:
            node = card.select_one(sel)
            if node is None:
                continue
            text = clean_text(node.get_text(" "))
            if text:
                return text
        return ""

    def _first_href(self, card: Tag, selectors: Sequence[str]) -> str | None:
        if card.name == "a" and card.get("href"):
            resolved = self.resolve_url(card.get("href"))
            if resolved:
                return resolved
        for sel in selectors:
            for node in card.select(sel):
                resolved = self.resolve_url(node.get("href"))
                if resolved:
                    return resolved
        return None

    def extract_company(self, card: Tag) -> str:
        return self._first_text(card, self.company_selectors)

    def parse_card(self, card: Tag, cfg: SourceConfig) -> JobRecord:
        """
        Extract one record. Raises ParseError if title, company or apply URL
        cannot be found.
        """
        title = self._first_text(card, self.title_selectors)
        company = self.extract_company(card)
        apply_url = self._first_href(card, self.link_selectors)
        if not title or not company or not apply_url:
            missing = [n for n, v in (("title", title), ("company", company), ("apply_url", apply_url)) if not v]
            raise ParseError(f"{cfg.label}: card missing {', '.join(missing)}")

        record = JobRecord(
            title=title,
            company=company,
            apply_url=apply_url,
            source=cfg.label,
            description=self._first_text(card, self.description_selectors),
            location=self._first_text(card, self.location_selectors),
            salary_range=self._first_text(card, self.salary_selectors),
            posted_text=self._first_text(card, self.posted_selectors),
        )
        if self.experience_selectors:
            record.experience_required = enricher.extract_experience(
                self._first_text(card, self.experience_selectors)
            )
        return record

    def parse_page(self, html: str, cfg: SourceConfig) -> tuple[list[JobRecord], int, int]:
        """Return (records, cards_seen, cards_rejected) for one page."""
        soup = BeautifulSoup(html, "html.parser")
        cards = self.find_cards(soup)
        records: list[JobRecord] = []
        rejected = 0
        for card in cards:
            try:
                records.append(self.parse_card(card, cfg))
            except ParseError as e:
                rejected += 1
                log.debug("%s", e)
        return records, len(cards), rejected

    # ---- driving ----
    def scrape(
        self,
        cfg: SourceConfig,
        fetch_tier: FetchTier,
        retry: RetryController,
        *,
        deep_scrape_limit: int = 10,
    ) -> ScrapeResult:
        result = ScrapeResult(source=cfg.label)

        for page in range(1, cfg.max_pages + 1):
            if page > 1:
                retry.pause(cfg.request_delay_ms)

            url = self.build_url(page, cfg)
            report = retry.run(
                lambda url=url: fetch_tier.fetch(url, self.card_selectors),
                cfg.max_retries,
                label=f"{cfg.label} p{page}",
            )
            fetched = report.result

            if fetched.outcome is FetchOutcome.SUCCESS:
                records, seen, rejected = self.parse_page(fetched.html, cfg)
                result.pages_fetched += 1
                result.cards_rejected += rejected
                result.records.extend(records)
                log.info(
                    "%s page %d via %s: %d cards, %d admitted",
                    cfg.label,
                    page,
                    fetched.tier,
                    seen,
                    len(records),
                )
                if seen == 0:
                    break
                continue

            if fetched.outcome is FetchOutcome.PARSE_EMPTY:
                result.pages_fetched += 1
                log.info("%s page %d empty (%s); pagination ends", cfg.label, page, fetched.error)
                break

            if page == 1:
                raise SourceFailure(cfg.label, f"{fetched.outcome.value} after {report.attempts} attempt(s): {fetched.error}")

            if fetched.outcome is FetchOutcome.NOT_FOUND:
                break

            result.errors.append(f"page {page}: {fetched.outcome.value} ({fetched.error})")

        if cfg.deep_scrape and result.records:
            self.deep_scrape(result, cfg, fetch_tier, retry, limit=deep_scrape_limit)
        return result

    def fetch_detail(self, url: str, cfg: SourceConfig, fetch_tier: FetchTier, retry: RetryController) -> FetchResult:
        """
        Fetch one detail page on the static tier. Raises TransientFetchError
        when a rate limit, challenge or timeout outlives the retries.
        """
        report = retry.run(
            lambda: fetch_tier.fetch(url, (), allow_render=False),
            cfg.max_retries,
            label=f"{cfg.label} detail",
        )
        if report.exhausted:
            raise TransientFetchError(
                f"{report.result.outcome.value} after {report.attempts} attempt(s)",
                url=url,
                outcome=report.result.outcome.value,
            )
        return report.result

    def deep_scrape(
        self,
        result: ScrapeResult,
        cfg: SourceConfig,
        fetch_tier: FetchTier,
        retry: RetryController,
        *,
        limit: int,
    ) -> int:
        """
        Fetch detail pages for records with thin descriptions (static tier only).
        Per-record failures are logged and skipped. Returns records enriched.
        """
        enriched = 0
        targets = [r for r in result.records if len(r.description) < DEEP_SCRAPE_MIN_DESCRIPTION][:limit]
        for rec in targets:
            retry.pause(cfg.request_delay_ms)
            try:
                fetched = self.fetch_detail(rec.apply_url, cfg, fetch_tier, retry)
            except (TransientFetchError, ValueError) as e:
                log.info("%s detail skipped: %s", cfg.label, e)
                result.errors.append(f"detail {rec.apply_url}: {e}")
                continue
            if not fetched.ok:
                result.errors.append(f"detail {rec.apply_url}: {fetched.outcome.value}")
                continue
            enricher.enrich_from_document(rec, fetched.html, self.detail_description_selectors)
            enriched += 1
        return enriched
