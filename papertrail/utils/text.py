"""Text processing utilities for titles, DOIs, authors and dates."""

import re
from typing import Any, Optional

from dateutil import parser as dtparser

# DOI regex pattern: 10.XXXX/... format
DOI_RE = re.compile(r"\b10\.\d{4,9}/[-._;()/:A-Z0-9]+\b", re.IGNORECASE)


def normalize_doi(doi: str) -> str:
    """Normalize DOI by removing URL prefixes and converting to lowercase."""
    doi = doi.strip()
    doi = doi.replace("https://doi.org/", "").replace("http://doi.org/", "")
    doi = doi.replace("https://dx.doi.org/", "").replace("http://dx.doi.org/", "")
    return doi.strip().lower()


def find_doi(text: str) -> Optional[str]:
    """Return the first DOI found in *text*, normalized, or None."""
    if not text:
        return None
    match = DOI_RE.search(text)
    return normalize_doi(match.group(0)) if match else None


def collapse_whitespace(text: Optional[str]) -> str:
    """Join all whitespace runs (including newlines) into single spaces."""
    if not text:
        return ""
    return " ".join(text.split())


def clean_title(text: str) -> str:
    """Clean title by removing HTML tags and normalizing whitespace.

    ArXiv titles wrap across lines and occasionally carry markup.

    Args:
        text: Raw title string

    Returns:
        Cleaned title string, or "Untitled" if empty
    """
    if not text or not isinstance(text, str):
        return text or "Untitled"

    # Remove HTML tags
    text = re.sub(r"<[^>]+>", " ", text)

    # Decode common HTML entities
    text = text.replace("&nbsp;", " ")
    text = text.replace("&amp;", "&")
    text = text.replace("&lt;", "<")
    text = text.replace("&gt;", ">")
    text = text.replace("&quot;", '"')
    text = text.replace("&#39;", "'")

    return collapse_whitespace(text) or "Untitled"


def split_authors(authors: Optional[str]) -> list[str]:
    """Split a free-text author field on commas, trimming each part."""
    if not authors or not authors.strip():
        return []
    return [a.strip() for a in authors.split(",")]


def parse_year(value: Any) -> Optional[int]:
    """Best-effort year from an int, a year string or a date string."""
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    text = str(value).strip()
    if re.fullmatch(r"\d{4}", text):
        return int(text)
    try:
        return dtparser.parse(text).year
    except (ValueError, OverflowError):
        return None


def matches_any(haystack: Any, needles: list[str]) -> bool:
    """Case-insensitive substring test of any needle against *haystack*.

    *haystack* may be a string or a list of strings (e.g. paper keywords).
    """
    if not haystack or not needles:
        return False
    if isinstance(haystack, (list, tuple, set)):
        text = " ".join(str(h) for h in haystack)
    else:
        text = str(haystack)
    text = text.lower()
    return any(n and n.lower() in text for n in needles)
