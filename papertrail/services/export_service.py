"""Markdown bibliography export."""

from datetime import date
from pathlib import Path

from papertrail.models.paper import Paper
from papertrail.services.citation_formatter import (
    format_citation,
    in_text_citation,
    normalize_style,
)


class BibliographyExporter:
    """Service for exporting formatted references to Markdown."""

    def __init__(self, export_dir: Path):
        """Initialize exporter.

        Args:
            export_dir: Directory to save exported markdown files
        """
        self.export_dir = export_dir
        self.export_dir.mkdir(parents=True, exist_ok=True)

    def render(self, papers: list[Paper], style: str = "ieee", default_venue: str = "arXiv") -> str:
        """Markdown text: numbered references grouped by year, newest first."""
        style = normalize_style(style)
        numbered = list(enumerate(papers, start=1))

        year_groups: dict[str, list[tuple[int, Paper]]] = {}
        for number, paper in numbered:
            key = str(paper.year) if paper.year else "Undated"
            year_groups.setdefault(key, []).append((number, paper))

        lines = [f"# Bibliography ({style.upper()})", ""]
        for year in sorted(year_groups, key=lambda y: (y != "Undated", y), reverse=True):
            lines.append(f"## {year}\n")
            for number, paper in year_groups[year]:
                lines.append(f"{number}. {format_citation(paper, style, default_venue)}")
                lines.append(f"   - In-text: {in_text_citation(paper, number, style)}")
                if paper.doi:
                    lines.append(f"   - Link: https://doi.org/{paper.doi}")
                elif paper.url:
                    lines.append(f"   - Link: {paper.url}")
            lines.append("")
        return "\n".join(lines)

    def export(self, papers: list[Paper], style: str = "ieee") -> Path:
        """Export references to a markdown file named by today's date and style.

        Args:
            papers: Papers to cite, in citation order
            style: Citation style

        Returns:
            Path to the created markdown file
        """
        filepath = self.export_dir / f"{date.today().isoformat()}-{normalize_style(style)}.md"

        # Overwrites an export from earlier today
        with open(filepath, "w", encoding="utf-8") as f:
            f.write(self.render(papers, style))

        return filepath
