"""Utility functions."""

from papertrail.utils.text import (
    clean_title,
    collapse_whitespace,
    find_doi,
    matches_any,
    normalize_doi,
    parse_year,
    split_authors,
)

__all__ = [
    "clean_title",
    "collapse_whitespace",
    "find_doi",
    "matches_any",
    "normalize_doi",
    "parse_year",
    "split_authors",
]
