"""
Regex-based inference of salary, location, deadline and experience.

Only empty fields are filled; adapter-supplied values are never overwritten.
Salaries are normalized to lakhs per annum (LPA).
"""

from __future__ import annotations

import json
import logging
import re
from datetime import datetime, timezone
from typing import Any

from bs4 import BeautifulSoup

from .models import JobRecord
from .utils import clean_text

log = logging.getLogger(__name__)

MAX_EXPERIENCE_YEARS = 20

_NUM = r"(\d+(?:\.\d+)?)"
_UNIT = r"(lakhs?|lacs?|lpa|crores?|cr|thousand|k)\b"
_MONTHLY = r"(?:\s*(?:/|per)\s*(?:month|mo)\b|\s*pm\b|\s*p\.m\.)"

_SALARY_RANGE_RE = re.compile(_NUM + r"\s*" + r"(?:" + _UNIT + r")?" + r"\s*(?:to|-|–|—)\s*" + _NUM + r"\s*" + _UNIT)
_SALARY_SINGLE_RE = re.compile(_NUM + r"\s*" + _UNIT)
_SALARY_MONTHLY_RE = re.compile(r"(?:₹|rs\.?|inr)?\s*(\d[\d,]*(?:\.\d+)?)" + _MONTHLY)
_SALARY_KEYWORD_RE = re.compile(
    r"(?:salary|ctc|package|compensation|stipend|pay)\s*[:\-]?\s*(?:₹|rs\.?|inr)?\s*(\d[\d,]*(?:\.\d+)?)"
)

KNOWN_CITIES = (
    "Bangalore",
    "Bengaluru",
    "Mumbai",
    "Delhi",
    "Hyderabad",
    "Chennai",
    "Pune",
    "Kolkata",
    "Ahmedabad",
    "Jaipur",
    "Surat",
    "Lucknow",
    "Kanpur",
    "Nagpur",
    "Indore",
    "Thane",
    "Bhopal",
    "Visakhapatnam",
    "Patna",
    "Vadodara",
    "Ghaziabad",
    "Noida",
    "Gurgaon",
    "Gurugram",
)
_REMOTE_RE = re.compile(r"\b(?:remote|work\s+from\s+home|wfh)\b", re.IGNORECASE)
_HYBRID_RE = re.compile(r"\bhybrid\b", re.IGNORECASE)
_LOCATION_ANCHOR_RE = re.compile(r"(?i:location)\s*[:\-]\s*([A-Z][A-Za-z ,]{2,48})")

_DEADLINE_RE = re.compile(
    r"(?:deadline|last\s+date(?:\s+to\s+apply)?|apply\s+by|closing\s+date|expires(?:\s+on)?|valid\s+until)"
    r"\s*[:\-]?\s*(?:on\s+)?"
    r"(\d{1,2}[/-]\d{1,2}[/-]\d{2,4}|\d{1,2}\s+[A-Za-z]{3,9},?\s+\d{4})",
    re.IGNORECASE,
)
_DEADLINE_FORMATS = ("%d/%m/%Y", "%d-%m-%Y", "%d/%m/%y", "%d-%m-%y", "%d %b %Y", "%d %B %Y", "%d %b, %Y", "%d %B, %Y")

_ENTRY_LEVEL_RE = re.compile(
    r"\b(?:entry[\s-]level|fresher|freshers|no\s+experience|0\s*(?:-|to)\s*1\s*(?:years?|yrs?)|0\s*(?:years?|yrs?))\b",
    re.IGNORECASE,
)
_EXPERIENCE_RE = re.compile(r"(\d+)\s*\+?\s*(?:-\s*\d+\s*)?(?:years?|yrs?)", re.IGNORECASE)


# -----------------------------
# Salary
# -----------------------------
def _to_lpa(value: float, unit: str) -> float:
    unit = unit.lower()
    if unit in ("thousand", "k"):
        return value / 100.0
    if unit.startswith("cr"):
        return value * 100.0
    return value


def extract_salary(text: str | None) -> str:
    """
    Return "<min> - <max> LPA", "<n> LPA", or "" when nothing matches.
    Tried in order: range with unit, single with unit, monthly amount,
    keyword-anchored amount.
    """
    if not text:
        return ""
    lowered = text.lower()

    m = _SALARY_RANGE_RE.search(lowered)
    if m:
        low_unit = m.group(2) or m.group(4)
        low = _to_lpa(float(m.group(1)), low_unit)
        high = _to_lpa(float(m.group(3)), m.group(4))
        return f"{low:.1f} - {high:.1f} LPA"

    m = _SALARY_SINGLE_RE.search(lowered)
    if m:
        return f"{_to_lpa(float(m.group(1)), m.group(2)):.1f} LPA"

    # Plain monthly amounts ("15000 per month") are read on the thousand scale.
    m = _SALARY_MONTHLY_RE.search(lowered)
    if m:
        amount = float(m.group(1).replace(",", ""))
        return f"{_to_lpa(amount, 'thousand'):.1f} LPA"

    m = _SALARY_KEYWORD_RE.search(lowered)
    if m:
        amount = float(m.group(1).replace(",", ""))
        if amount >= 100000:
            amount /= 100000.0  # plain rupees per annum
        elif amount >= 1000:
            amount = _to_lpa(amount, "thousand")
        return f"{amount:.1f} LPA (approx)"
    return ""


# -----------------------------
# Location
# -----------------------------
def extract_location(text: str | None) -> str:
    if not text:
        return ""
    if _REMOTE_RE.search(text):
        return "Remote"
    if _HYBRID_RE.search(text):
        return "Hybrid"
    lowered = text.lower()
    for city in KNOWN_CITIES:
        if re.search(r"\b" + re.escape(city.lower()) + r"\b", lowered):
            return city
    m = _LOCATION_ANCHOR_RE.search(text)
    if m:
        return m.group(1).strip(" ,.")
    return ""


# -----------------------------
# Deadline
# -----------------------------
def extract_deadline(text: str | None) -> datetime | None:
    if not text:
        return None
    m = _DEADLINE_RE.search(text)
    if not m:
        return None
    token = " ".join(m.group(1).split())
    for fmt in _DEADLINE_FORMATS:
        try:
            return datetime.strptime(token, fmt).replace(tzinfo=timezone.utc)
        except ValueError:
            continue
    return None


# -----------------------------
# Experience
# -----------------------------
def extract_experience(text: str | None) -> int | None:
    if not text:
        return None
    if _ENTRY_LEVEL_RE.search(text):
        return 0
    m = _EXPERIENCE_RE.search(text)
    if m:
        return min(int(m.group(1)), MAX_EXPERIENCE_YEARS)
    return None


def enrich_record(record: JobRecord) -> JobRecord:
    """Fill empty salary/location/deadline/experience fields in place."""
    text = f"{record.title} {record.description}"
    if not record.salary_range:
        record.salary_range = extract_salary(text)
    if not record.location:
        record.location = extract_location(text)
    if record.application_deadline is None:
        record.application_deadline = extract_deadline(text)
    if record.experience_required is None:
        record.experience_required = extract_experience(text)
    elif record.experience_required > MAX_EXPERIENCE_YEARS:
        record.experience_required = MAX_EXPERIENCE_YEARS
    return record


# -----------------------------
# Detail-page enrichment
# -----------------------------
def _json_ld_postings(soup: BeautifulSoup) -> list[dict[str, Any]]:
    out: list[dict[str, Any]] = []
    for tag in soup.find_all("script", attrs={"type": "application/ld+json"}):
        try:
            data = json.loads(tag.string or tag.get_text() or "")
        except (TypeError, ValueError):
            continue
        items = data if isinstance(data, list) else data.get("@graph", [data]) if isinstance(data, dict) else []
        out.extend(i for i in items if isinstance(i, dict) and i.get("@type") == "JobPosting")
    return out


def _json_ld_salary(posting: dict[str, Any]) -> str:
    base = posting.get("baseSalary")
    if not isinstance(base, dict):
        return ""
    value = base.get("value")
    if not isinstance(value, dict):
        return ""
    unit = str(value.get("unitText") or "YEAR").upper()
    low, high = value.get("minValue"), value.get("maxValue")
    try:
        low_f = float(low) if low is not None else None
        high_f = float(high) if high is not None else None
    except (TypeError, ValueError):
        return ""
    factor = 12.0 if unit == "MONTH" else 1.0

    def _lpa(v: float) -> float:
        return v * factor / 100000.0

    if low_f is not None and high_f is not None:
        return f"{_lpa(low_f):.1f} - {_lpa(high_f):.1f} LPA"
    if low_f is not None or high_f is not None:
        return f"{_lpa(low_f if low_f is not None else high_f):.1f} LPA"
    return ""


def enrich_from_document(record: JobRecord, html: str, description_selectors: tuple[str, ...] = ()) -> JobRecord:
    """
    Fill empty/short fields from a job detail page: JSON-LD JobPosting first,
    then the adapter's description selectors, then meta description.
    """
    soup = BeautifulSoup(html, "html.parser")

    for posting in _json_ld_postings(soup):
        if len(record.description) < 80 and posting.get("description"):
            desc_html = str(posting["description"])
            record.description = clean_text(BeautifulSoup(desc_html, "html.parser").get_text(" "))
        if not record.salary_range:
            record.salary_range = _json_ld_salary(posting)
        if not record.location:
            loc = posting.get("jobLocation")
            if isinstance(loc, list) and loc:
                loc = loc[0]
            if isinstance(loc, dict):
                addr = loc.get("address") or {}
                if isinstance(addr, dict):
                    record.location = clean_text(addr.get("addressLocality") or addr.get("addressRegion") or "")
        if posting.get("jobLocationType") == "TELECOMMUTE" and not record.location:
            record.location = "Remote"
        break

    if len(record.description) < 80:
        for sel in description_selectors:
            node = soup.select_one(sel)
            if node is not None:
                text = clean_text(node.get_text(" "))
                if len(text) > len(record.description):
                    record.description = text
                    break

    if len(record.description) < 80:
        meta = soup.find("meta", attrs={"name": "description"}) or soup.find("meta", attrs={"property": "og:description"})
        content = clean_text(meta.get("content")) if meta is not None else ""
        if len(content) > len(record.description):
            record.description = content

    return record
