"""Console UI for terminal output using Rich."""

from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from papertrail.models.paper import Paper
from papertrail.services.citation_extractor import CitationMarker
from papertrail.services.ranking_service import RankedPaper


class ConsoleUI:
    """Rich-based console UI for paper display and notifications."""

    def __init__(self, console: Optional[Console] = None):
        """Initialize console."""
        self._console = console or Console()

    @property
    def console(self) -> Console:
        return self._console

    def info(self, message: str) -> None:
        """Print an info message; Rich markup in *message* is rendered."""
        self._console.print(message)

    def success(self, message: str) -> None:
        """Print a success message in green."""
        self._console.print(f"[green]{escape(message)}[/green]")

    def warning(self, message: str) -> None:
        """Print a warning message in yellow."""
        self._console.print(f"[yellow]Warning:[/yellow] {escape(message)}")

    def error(self, message: str) -> None:
        """Print an error message in red."""
        self._console.print(f"[red]Error:[/red] {escape(message)}")

    def selection_changed(self, ids: list[str], selected: bool) -> None:
        label = "Selected" if selected else "Deselected"
        self._console.print(f"[green]{label}[/green]: {escape(', '.join(ids))}")

    def populated(self, count: int, topics: list[str]) -> None:
        self._console.print(
            f"\n[green]Done.[/green] Added [bold]{count}[/bold] papers for: {escape(', '.join(topics))}"
        )

    def exported(self, count: int, filepath: Path) -> None:
        self._console.print(f"[green]Exported[/green] {count} references to {escape(str(filepath))}")

    def display_papers(self, papers: list[Paper], title: str = "Papers", show_tip: bool = True) -> None:
        """Display papers in a formatted table.

        Args:
            papers: List of papers to display
            title: Table title
            show_tip: Whether to show the select tip
        """
        table = Table(title=title)
        table.add_column("ID", overflow="fold")
        table.add_column("Sel", justify="center", width=3)
        table.add_column("Year", width=4)
        table.add_column("Authors", overflow="fold")
        table.add_column("Title", overflow="fold")
        table.add_column("Venue", overflow="fold")

        for paper in papers:
            table.add_row(
                escape(paper.id or "-"),
                "*" if paper.is_selected else "",
                str(paper.year) if paper.year else "-",
                escape(paper.authors or "-"),
                escape(paper.title),
                escape(paper.display_venue or "-"),
            )

        self._console.print(table)

        if papers and show_tip:
            self._console.print("Tip: `papertrail select <id> ...` adds papers to the working set")
        elif not papers:
            self._console.print("No papers found.")

    def display_ranked(self, ranked: list[RankedPaper]) -> None:
        table = Table(title="Recommended papers")
        table.add_column("Score", justify="right")
        table.add_column("Year", width=4)
        table.add_column("Title", overflow="fold")
        table.add_column("Topic", overflow="fold")
        for r in ranked:
            table.add_row(
                f"{r.score:.1f}",
                str(r.paper.year) if r.paper.year else "-",
                escape(r.paper.title),
                escape(r.paper.topic or "-"),
            )
        self._console.print(table)
        if not ranked:
            self._console.print("No matching papers.")

    def display_markers(self, markers: list[CitationMarker]) -> None:
        table = Table(title="Citation markers")
        table.add_column("Pos", justify="right")
        table.add_column("Type")
        table.add_column("Match")
        table.add_column("Reference")
        for m in markers:
            table.add_row(str(m.position), m.type, escape(m.match), escape(m.reference))
        self._console.print(table)
