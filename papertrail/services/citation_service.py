"""Generate, persist and collect citations for stored papers."""

import logging
from typing import Any, Optional

from papertrail.database.repository import CitationRepository, PaperRepository
from papertrail.models.records import Citation
from papertrail.services.citation_formatter import (
    format_citation,
    in_text_citation,
    normalize_style,
)

logger = logging.getLogger(__name__)

# Papers without a venue are assumed to come from arXiv ingestion
STORED_DEFAULT_VENUE = "arXiv"


class CitationService:
    """Citation generation backed by the paper and citation repositories."""

    def __init__(self, papers: PaperRepository, citations: CitationRepository):
        self.papers = papers
        self.citations = citations

    def generate(
        self, paper_id: Any, style: Optional[str] = "ieee", number: int = 1
    ) -> Optional[str]:
        """Format a stored paper and record the citation.

        Each call appends a new citation record, even for a paper/style
        pair that was generated before.

        Args:
            paper_id: Id of the stored paper
            style: Citation style (unknown styles render as IEEE)
            number: 1-based position of the paper in the cited list, used
                for the numeric in-text marker

        Returns:
            The citation text, or None if the paper does not exist
        """
        paper = self.papers.get(paper_id)
        if paper is None:
            return None

        resolved = normalize_style(style)
        text = format_citation(paper, resolved, default_venue=STORED_DEFAULT_VENUE)
        self.citations.add(
            Citation(
                paper_id=paper.id,  # type: ignore[arg-type]
                citation_text=text,
                style=resolved,
                in_text_citation=in_text_citation(paper, number, resolved),
            )
        )
        return text

    def generate_selected(self, style: Optional[str] = "ieee") -> list[dict[str, Any]]:
        """Generate a citation for every selected paper.

        A failure for one paper is reported in its entry and does not stop
        the others.
        """
        entries: list[dict[str, Any]] = []
        for number, paper in enumerate(self.papers.filter_by_selection(), start=1):
            entry: dict[str, Any] = {"paperId": paper.id, "title": paper.title}
            try:
                entry["citation"] = self.generate(paper.id, style, number)
            except Exception as e:
                logger.error("Citation generation failed for paper %s: %s", paper.id, e)
                entry["citation"] = None
                entry["error"] = str(e)
            entries.append(entry)
        return entries

    def by_style(self, style: Optional[str] = "ieee") -> list[dict[str, Any]]:
        """Stored citations of *style*, joined with their paper.

        Citations whose paper has been deleted are skipped.  Ordered by
        paper year, newest first.
        """
        rows: list[dict[str, Any]] = []
        for citation in self.citations.by_style(normalize_style(style)):
            paper = self.papers.get(citation.paper_id)
            if paper is None:
                continue
            row = citation.to_dict()
            row.update(
                title=paper.title,
                authors=paper.authors,
                year=paper.year,
                venue=paper.venue,
            )
            rows.append(row)
        rows.sort(key=lambda r: r["year"] or 0, reverse=True)
        return rows

    def bibliography(self, style: Optional[str] = "ieee", fmt: str = "text") -> Any:
        """Numbered bibliography of the stored citations of *style*.

        Args:
            style: Citation style
            fmt: ``"text"`` for ``[n] citation`` entries separated by blank
                lines, ``"json"`` for a list of dicts

        Returns:
            A string or a list, depending on *fmt*
        """
        rows = self.by_style(style)
        if fmt == "json":
            return [
                {
                    "number": index,
                    "citation": row["citation_text"],
                    "title": row["title"],
                    "authors": row["authors"],
                    "year": row["year"],
                }
                for index, row in enumerate(rows, start=1)
            ]
        return "\n\n".join(
            f"[{index}] {row['citation_text']}" for index, row in enumerate(rows, start=1)
        )
