"""
Date helpers used to pin free-text release titles to one air date.
"""
from datetime import date
from typing import Iterable, List, Optional
import re

from ..models.search_result import CandidateRow

ISO_DATE_PATTERN = re.compile(r'^\d{4}-\d{2}-\d{2}$')
ISO_PREFIX_PATTERN = re.compile(r'^(\d{4}-\d{2}-\d{2})')

# Fixed English abbreviations; strftime("%b") follows the process locale.
MONTH_ABBREVIATIONS = ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]


def normalize_text(text: Optional[str]) -> str:
    return re.sub(r'\s+', ' ', (text or "").lower()).strip()


def to_iso_date_only(released: Optional[str]) -> Optional[str]:
    """Return the YYYY-MM-DD prefix of a release timestamp, if any."""
    if not released:
        return None
    match = ISO_PREFIX_PATTERN.match(str(released))
    return match.group(1) if match else None


def ordinal_suffix(day: int) -> str:
    if 11 <= day % 100 <= 13:
        return "th"
    return {1: "st", 2: "nd", 3: "rd"}.get(day % 10, "th")


def format_date_variants(iso_date: Optional[str]) -> List[str]:
    """
    Expand an ISO date into the forms release titles tend to use.

    "2026-02-24" -> ["24 Feb 2026", "24th Feb 2026", "2026-02-24"]

    An empty list means "no date constraint" and switches date filtering off
    downstream, so a malformed date yields [] rather than a partial set.
    """
    if not iso_date or not ISO_DATE_PATTERN.match(iso_date):
        return []
    try:
        parsed = date.fromisoformat(iso_date)
    except ValueError:
        return []

    mon = MONTH_ABBREVIATIONS[parsed.month - 1]
    return [
        f"{parsed.day} {mon} {parsed.year}",
        f"{parsed.day}{ordinal_suffix(parsed.day)} {mon} {parsed.year}",
        iso_date,
    ]


def match_by_date(title: str, date_variants: Optional[Iterable[str]]) -> bool:
    variants = list(date_variants or [])
    if not variants:
        return True
    haystack = normalize_text(title)
    return any(normalize_text(variant) in haystack for variant in variants)


def filter_by_date(rows: List[CandidateRow], date_variants: Optional[List[str]]) -> List[CandidateRow]:
    if not date_variants:
        return list(rows)
    return [row for row in rows if match_by_date(row.title, date_variants)]
