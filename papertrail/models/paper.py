"""Paper data model."""

from dataclasses import asdict, dataclass, field, fields
from typing import Any, Optional, Union

from papertrail.utils.text import parse_year

# Free-text fields; other JSON types sent for them are stored as their str()
TEXT_FIELDS = (
    "title", "authors", "abstract", "venue", "journal", "conference", "doi",
    "url", "pdf_url", "arxiv_id", "topic", "content_text", "file_path", "file_name",
)


@dataclass
class Paper:
    """Represents a research paper in the library."""

    title: str
    authors: Optional[str] = None
    abstract: Optional[str] = None
    year: Optional[int] = None
    venue: Optional[str] = None
    journal: Optional[str] = None
    conference: Optional[str] = None
    doi: Optional[str] = None
    url: Optional[str] = None
    pdf_url: Optional[str] = None
    arxiv_id: Optional[str] = None
    topic: Optional[str] = None
    keywords: Optional[Union[str, list[str]]] = None
    citation_count: int = 0
    content_text: Optional[str] = None
    file_path: Optional[str] = None
    file_name: Optional[str] = None
    metadata: dict[str, Any] = field(default_factory=dict)
    # Anything else the client sent; flattened back into the JSON record
    extra: dict[str, Any] = field(default_factory=dict)

    # Database fields (set by the store)
    id: Optional[str] = None
    is_selected: bool = False
    upload_date: Optional[str] = None

    @property
    def display_venue(self) -> Optional[str]:
        """``venue``, ``journal`` or ``conference``, whichever is set first."""
        return self.venue or self.journal or self.conference

    def to_dict(self) -> dict[str, Any]:
        """Flat JSON-ready dict (``extra`` keys merged at top level)."""
        data = asdict(self)
        extra = data.pop("extra")
        return {**extra, **data}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Paper":
        """Build a Paper from a JSON record; unknown keys land in ``extra``."""
        known = {f.name for f in fields(cls)} - {"extra"}
        kwargs: dict[str, Any] = {}
        extra = data.get("extra")
        extra = dict(extra) if isinstance(extra, dict) else {}
        for key, value in data.items():
            if key == "extra":
                continue
            if key in known:
                kwargs[key] = value
            else:
                extra[key] = value

        if isinstance(kwargs.get("authors"), list):
            kwargs["authors"] = ", ".join(str(a) for a in kwargs["authors"])
        for name in TEXT_FIELDS:
            kwargs[name] = _as_text(kwargs.get(name))
        kwargs["title"] = kwargs["title"] or ""
        keywords = kwargs.get("keywords")
        if keywords is not None and not isinstance(keywords, (str, list)):
            kwargs["keywords"] = str(keywords)
        kwargs["year"] = parse_year(kwargs.get("year"))
        kwargs["citation_count"] = _as_int(kwargs.get("citation_count"))
        kwargs["is_selected"] = bool(kwargs.get("is_selected", False))
        metadata = kwargs.get("metadata")
        kwargs["metadata"] = dict(metadata) if isinstance(metadata, dict) else {}
        if kwargs.get("id") is not None:
            kwargs["id"] = str(kwargs["id"])
        return cls(extra=extra, **kwargs)


def _as_text(value: Any) -> Optional[str]:
    if value is None or isinstance(value, str):
        return value
    return str(value)


def _as_int(value: Any) -> int:
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        return 0
