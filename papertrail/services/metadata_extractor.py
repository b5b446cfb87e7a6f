"""Heuristic title, author, abstract and year detection in document text."""

import re
from dataclasses import asdict, dataclass
from datetime import date
from typing import Any, Optional

# Only the head of a document is scanned for metadata
HEAD_LINES = 20
# Lines after the "Abstract" line that may continue it
ABSTRACT_LOOKAHEAD = 9
MIN_YEAR = 1990

_NAME_RE = re.compile(r"[A-Z][a-z]+\s+[A-Z][a-z]+")
_ABSTRACT_PREFIX_RE = re.compile(r"^abstract[:\-\s]*", re.IGNORECASE)
_NUMBERED_HEADING_RE = re.compile(r"^\d+\.?\s")
_YEAR_RE = re.compile(r"\b\d{4}\b")


@dataclass
class DocumentMetadata:
    """Fields recovered from the head of a document (empty when not found)."""

    title: str = ""
    authors: str = ""
    abstract: str = ""

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def _ends_abstract(line: str) -> bool:
    lower = line.lower()
    return (
        lower.startswith("introduction")
        or lower.startswith("keywords")
        or bool(_NUMBERED_HEADING_RE.match(line))
    )


def extract_metadata(content: Any) -> DocumentMetadata:
    """Guess title, authors and abstract from document text.

    Only the first 20 non-blank lines are looked at:

    * title: the first line 10 to 199 characters long that is the very
      first line or entirely upper-case
    * authors: the first other line 5 to 149 characters long containing a
      comma or a ``Firstname Lastname`` pair
    * abstract: the first other line starting with "abstract" (prefix
      stripped), joined with up to 9 following lines until a section
      heading; scanning stops there

    Args:
        content: Extracted document text; anything else yields empty fields

    Returns:
        DocumentMetadata with empty strings for whatever was not found
    """
    meta = DocumentMetadata()
    if not isinstance(content, str):
        return meta

    lines = [line.strip() for line in content.splitlines() if line.strip()]

    for i, line in enumerate(lines[:HEAD_LINES]):
        if not meta.title and 10 <= len(line) < 200:
            if i == 0 or line == line.upper():
                meta.title = line
                continue

        if not meta.authors and 5 <= len(line) < 150:
            if "," in line or _NAME_RE.search(line):
                meta.authors = line
                continue

        if line.lower().startswith("abstract"):
            parts = [_ABSTRACT_PREFIX_RE.sub("", line)]
            for next_line in lines[i + 1 : i + 1 + ABSTRACT_LOOKAHEAD]:
                if _ends_abstract(next_line):
                    break
                parts.append(next_line)
            meta.abstract = " ".join(parts).strip()
            break

    return meta


def extract_year(content: Any) -> Optional[int]:
    """Most recent 4-digit year in *content* between 1990 and this year.

    Returns:
        The year, or None when the text holds no plausible year
    """
    if not isinstance(content, str):
        return None
    current = date.today().year
    years = [int(y) for y in _YEAR_RE.findall(content) if MIN_YEAR <= int(y) <= current]
    return max(years) if years else None
