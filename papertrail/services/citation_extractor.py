"""Pattern scan of free text for in-text citation markers."""

import re
from dataclasses import asdict, dataclass
from typing import Any, Iterator

# (marker type, pattern); group 1, when present, is the reference
CITATION_PATTERNS: list[tuple[str, re.Pattern[str]]] = [
    ("ieee-numeric", re.compile(r"\[(\d+)\]")),
    ("author-year", re.compile(r"\(([A-Z][a-z]+(?:\s+et\s+al\.)?),?\s+(\d{4})\)")),
    ("superscript", re.compile(r"[¹²³⁴⁵⁶⁷⁸⁹⁰]")),
]


@dataclass(frozen=True)
class CitationMarker:
    """One citation marker found in a text."""

    type: str
    match: str
    position: int
    reference: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def iter_citations(text: Any) -> Iterator[CitationMarker]:
    """Yield citation markers in *text*, ordered by position.

    Markers with the same matched text at the same position are reported
    once.  Ties at one position keep pattern order.  Non-string or empty
    input yields nothing.
    """
    if not isinstance(text, str) or not text:
        return

    found: list[CitationMarker] = []
    seen: set[tuple[str, int]] = set()
    for kind, pattern in CITATION_PATTERNS:
        for m in pattern.finditer(text):
            key = (m.group(0), m.start())
            if key in seen:
                continue
            seen.add(key)
            reference = m.group(1) if pattern.groups else m.group(0)
            found.append(CitationMarker(kind, m.group(0), m.start(), reference))

    found.sort(key=lambda c: c.position)
    yield from found


def extract_citations(text: Any) -> list[CitationMarker]:
    """All citation markers in *text* (see :func:`iter_citations`)."""
    return list(iter_citations(text))
