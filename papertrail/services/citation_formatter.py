"""Rule-based citation formatting in IEEE, APA, MLA and Chicago styles.

Every function here is pure: it reads the paper fields and returns text.
Papers may be :class:`Paper` instances or plain dicts with the same keys.
"""

from datetime import date
from typing import Any, Mapping, Optional, Union

from papertrail.models.paper import Paper
from papertrail.utils.text import split_authors

STYLES = ("ieee", "apa", "mla", "chicago")
DEFAULT_STYLE = "ieee"
UNKNOWN_AUTHOR = "Unknown Author"
UNTITLED = "Untitled"
UNKNOWN_VENUE = "Unknown Venue"

# IEEE lists every author up to this many, then switches to "et al."
IEEE_MAX_AUTHORS = 3

# Required fields per style for validate_citation()
_REQUIRED_FIELDS = {
    "ieee": ("authors", "title", "year"),
    "apa": ("authors", "title", "year"),
    "mla": ("authors", "title"),
    "chicago": ("authors", "title"),
}

PaperLike = Union[Paper, Mapping[str, Any]]


def _field(paper: PaperLike, name: str) -> Any:
    if isinstance(paper, Paper):
        return getattr(paper, name, None)
    return paper.get(name)


def normalize_style(style: Optional[str]) -> str:
    """Lower-case *style*; anything unknown becomes IEEE."""
    value = (style or "").strip().lower()
    return value if value in STYLES else DEFAULT_STYLE


def first_author(authors: Optional[str]) -> str:
    """Text before the first comma, trimmed."""
    names = split_authors(authors)
    return names[0] if names else UNKNOWN_AUTHOR


def last_name(authors: Optional[str]) -> str:
    """Last whitespace token of the first author, or ``Unknown``."""
    names = split_authors(authors)
    if not names or not names[0]:
        return "Unknown"
    return names[0].split()[-1]


def _ieee_authors(authors: Optional[str]) -> str:
    names = split_authors(authors)
    if not names:
        return UNKNOWN_AUTHOR
    if len(names) <= IEEE_MAX_AUTHORS:
        return ", ".join(names)
    return f"{names[0]} et al."


def _venue(paper: PaperLike, default_venue: str) -> str:
    return (
        _field(paper, "venue")
        or _field(paper, "journal")
        or _field(paper, "conference")
        or default_venue
    )


def format_citation(
    paper: PaperLike, style: Optional[str] = DEFAULT_STYLE, default_venue: str = UNKNOWN_VENUE
) -> str:
    """Render one paper as a reference string.

    Args:
        paper: Paper or dict; missing fields fall back to placeholders
        style: ``ieee``, ``apa``, ``mla`` or ``chicago`` (case-insensitive,
            unknown styles render as IEEE)
        default_venue: Venue used when the paper has no venue, journal or
            conference

    Returns:
        The formatted reference
    """
    style = normalize_style(style)
    authors = _field(paper, "authors")
    title = _field(paper, "title") or UNTITLED
    venue = _venue(paper, default_venue)
    year = _field(paper, "year")

    if style == "apa":
        return f"{first_author(authors)} ({year or 'n.d.'}). {title}. {venue}."
    if style == "mla":
        return f'{first_author(authors)}. "{title}." {venue}, {year or "n.d."}.'
    if style == "chicago":
        return f'{first_author(authors)}. "{title}." {venue} ({year or "n.d."}).'
    return f'{_ieee_authors(authors)}, "{title}," {venue}, {year or "Unknown Year"}.'


def format_citations(
    papers: list[PaperLike], style: Optional[str] = DEFAULT_STYLE, default_venue: str = UNKNOWN_VENUE
) -> list[dict[str, Any]]:
    """Batch form of :func:`format_citation`.

    Returns:
        One ``{"id", "formatted", "style"}`` dict per paper, in input order
    """
    resolved = normalize_style(style)
    return [
        {
            "id": _field(p, "id"),
            "formatted": format_citation(p, resolved, default_venue),
            "style": resolved,
        }
        for p in papers
    ]


def in_text_citation(paper: PaperLike, number: int, style: Optional[str] = DEFAULT_STYLE) -> str:
    """In-text marker for the paper at 1-based position *number*."""
    style = normalize_style(style)
    if style in ("apa", "mla"):
        year = _field(paper, "year") or date.today().year
        return f"({last_name(_field(paper, 'authors'))}, {year})"
    return f"[{number}]"


def in_text_citations(
    papers: list[PaperLike], style: Optional[str] = DEFAULT_STYLE
) -> list[dict[str, Any]]:
    """In-text markers for *papers*, numbered by input position.

    Returns:
        One ``{"id", "inText", "number"}`` dict per paper
    """
    return [
        {
            "id": _field(p, "id"),
            "inText": in_text_citation(p, index, style),
            "number": index,
        }
        for index, p in enumerate(papers, start=1)
    ]


def validate_citation(paper: PaperLike, style: str = DEFAULT_STYLE) -> tuple[bool, Optional[str]]:
    """Check that *paper* has the fields *style* requires.

    Returns:
        ``(True, None)`` or ``(False, error message)``
    """
    required = _REQUIRED_FIELDS.get((style or "").lower())
    if required is None:
        return False, "Unknown citation style"
    for name in required:
        if not _field(paper, name):
            return False, f"Missing required field: {name}"
    return True, None
