"""Command-line interface handlers."""

import argparse
import logging
from pathlib import Path
from typing import Optional

import uvicorn
from rich.markup import escape
from rich.progress import Progress, SpinnerColumn, TextColumn

from papertrail.config import Settings
from papertrail.console import ConsoleUI
from papertrail.database.repository import Database
from papertrail.server.app import create_app
from papertrail.services.arxiv_service import ArxivError, ArxivService
from papertrail.services.citation_extractor import extract_citations
from papertrail.services.citation_formatter import STYLES, format_citation
from papertrail.services.citation_service import STORED_DEFAULT_VENUE, CitationService
from papertrail.services.document_service import extract_paper_data, extract_text
from papertrail.services.export_service import BibliographyExporter
from papertrail.services.ranking_service import RankingService
from papertrail.utils.log import setup_logging

logger = logging.getLogger(__name__)


class PaperTrailCLI:
    """CLI application for PaperTrail."""

    def __init__(self, settings: Optional[Settings] = None, ui: Optional[ConsoleUI] = None):
        """Initialize CLI with settings.

        Args:
            settings: Application settings (loads from disk if not provided)
            ui: Console UI (tests pass one recording output)
        """
        self.settings = settings or Settings.load()
        self.ui = ui or ConsoleUI()
        self.db = Database(self.settings.data_dir)

    def cmd_serve(self, host: Optional[str] = None, port: Optional[int] = None) -> None:
        """Run the HTTP API with uvicorn."""
        uvicorn.run(
            create_app(self.settings),
            host=host or self.settings.host,
            port=port or self.settings.port,
        )

    def cmd_list(self, selected: bool = False, limit: int = 50) -> None:
        """List stored papers, newest first.

        Args:
            selected: Only papers in the working set
            limit: Maximum papers to display
        """
        papers = self.db.papers.filter_by_selection() if selected else self.db.papers.all()
        title = "Selected papers" if selected else "Papers"
        self.ui.display_papers(papers[:limit], title)

    def cmd_add(
        self,
        title: str,
        authors: Optional[str] = None,
        year: Optional[int] = None,
        venue: Optional[str] = None,
        doi: Optional[str] = None,
    ) -> str:
        """Add a paper by hand."""
        paper_id = self.db.papers.add(
            {"title": title, "authors": authors, "year": year, "venue": venue, "doi": doi}
        )
        self.ui.success(f"Added paper {paper_id}")
        return paper_id

    def cmd_search(self, query: str) -> None:
        self.ui.display_papers(self.db.papers.search(query), f"Search: {escape(query)}", show_tip=False)

    def cmd_select(self, ids: list[str], selected: bool = True) -> None:
        """Add papers to (or remove them from) the working set.

        Unknown ids are reported and skipped.
        """
        known = [pid for pid in ids if self.db.papers.get(pid) is not None]
        for pid in set(ids) - set(known):
            self.ui.warning(f"No paper with id {pid}")
        for pid in known:
            self.db.papers.set_selection(pid, selected)
        if known:
            self.ui.selection_changed(known, selected)

    def cmd_cite(self, paper_id: str, style: str = "ieee") -> None:
        """Generate and store a citation for one paper."""
        citation = CitationService(self.db.papers, self.db.citations).generate(paper_id, style)
        if citation is None:
            self.ui.error(f"No paper with id {paper_id}")
            return
        self.ui.info(escape(citation))

    def cmd_bibliography(self, style: str = "ieee", export: bool = False) -> None:
        """Print (or export to Markdown) references for the selected papers."""
        papers = self.db.papers.filter_by_selection()
        if not papers:
            self.ui.warning("No papers selected. Use `papertrail select <id> ...` first.")
            return

        if export:
            filepath = BibliographyExporter(self.settings.export_dir).export(papers, style)
            self.ui.exported(len(papers), filepath)
            return

        for number, paper in enumerate(papers, start=1):
            self.ui.info(escape(f"[{number}] {format_citation(paper, style, STORED_DEFAULT_VENUE)}"))

    def cmd_populate(self, topics: Optional[list[str]] = None, per_topic: Optional[int] = None) -> None:
        """Fetch papers from ArXiv for each topic and store them."""
        arxiv_settings = self.settings.arxiv
        topics = topics or arxiv_settings.default_topics
        per_topic = per_topic or arxiv_settings.papers_per_topic
        service = ArxivService(
            base_url=arxiv_settings.base_url,
            timeout=arxiv_settings.timeout,
            delay=arxiv_settings.delay,
        )

        added = 0
        with Progress(
            SpinnerColumn(),
            TextColumn("[bold blue]{task.description}"),
            console=self.ui.console,
        ) as progress:
            task = progress.add_task("Fetching papers...", total=None)
            try:
                for topic in topics:
                    progress.update(task, description=f"Fetching '{escape(topic)}' ({added} added)")
                    added += len(service.populate(self.db.papers, [topic], per_topic))
            except ArxivError as e:
                self.ui.error(str(e))
                return

        self.ui.populated(added, topics)

    def cmd_extract(self, path: Path) -> None:
        """Show the metadata and citation markers found in a document."""
        if not path.exists():
            self.ui.error(f"File not found: {path}")
            return

        data = extract_paper_data(path, path.name, path.stat().st_size)
        self.ui.info(f"[bold]Title:[/bold] {escape(data['title'])}")
        self.ui.info(f"[bold]Authors:[/bold] {escape(data['authors'] or '-')}")
        self.ui.info(f"[bold]Year:[/bold] {data['year'] or '-'}")
        self.ui.info(f"[bold]Abstract:[/bold] {escape(data['abstract'] or '-')}")

        try:
            text = extract_text(path)
        except Exception as e:
            logger.warning("Could not read %s: %s", path, e)
            return
        self.ui.display_markers(extract_citations(text))

    def cmd_recommend(self, message: str, limit: int = 10) -> None:
        ranked = RankingService().rank(self.db.papers.all(), message, limit)
        self.ui.display_ranked(ranked)


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser for CLI.

    Returns:
        Configured ArgumentParser
    """
    parser = argparse.ArgumentParser(
        prog="papertrail",
        description="Research paper library, citations and writing assistant",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # serve command
    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", default=None, help="Bind address (default: config)")
    serve_parser.add_argument("--port", type=int, default=None, help="Port (default: config)")

    # list command
    list_parser = subparsers.add_parser("list", help="List stored papers")
    list_parser.add_argument("--selected", action="store_true", help="Only selected papers")
    list_parser.add_argument(
        "--limit",
        type=int,
        default=50,
        help="Maximum papers to display (default: 50)",
    )

    # add command
    add_parser = subparsers.add_parser("add", help="Add a paper by hand")
    add_parser.add_argument("title", help="Paper title")
    add_parser.add_argument("--authors", help="Comma-separated authors")
    add_parser.add_argument("--year", type=int)
    add_parser.add_argument("--venue")
    add_parser.add_argument("--doi")

    # search command
    search_parser = subparsers.add_parser("search", help="Search title, authors and abstract")
    search_parser.add_argument("query")

    # select / deselect commands
    select_parser = subparsers.add_parser("select", help="Add paper IDs to the working set")
    select_parser.add_argument("ids", nargs="+", help="Paper IDs to select")
    deselect_parser = subparsers.add_parser("deselect", help="Remove paper IDs from the working set")
    deselect_parser.add_argument("ids", nargs="+", help="Paper IDs to deselect")

    # cite command
    cite_parser = subparsers.add_parser("cite", help="Generate a citation for a paper")
    cite_parser.add_argument("id", help="Paper ID")
    cite_parser.add_argument("--style", default="ieee", choices=STYLES)

    # bibliography command
    bib_parser = subparsers.add_parser("bibliography", help="References for the selected papers")
    bib_parser.add_argument("--style", default="ieee", choices=STYLES)
    bib_parser.add_argument("--export", action="store_true", help="Write a Markdown file")

    # populate command
    populate_parser = subparsers.add_parser("populate", help="Fetch papers from ArXiv")
    populate_parser.add_argument("--topics", nargs="+", help="Topics (default: config)")
    populate_parser.add_argument("--per-topic", type=int, dest="per_topic")

    # extract command
    extract_parser = subparsers.add_parser("extract", help="Extract metadata and citations from a file")
    extract_parser.add_argument("file", type=Path)

    # recommend command
    recommend_parser = subparsers.add_parser("recommend", help="Recommend stored papers for a message")
    recommend_parser.add_argument("message")
    recommend_parser.add_argument("--limit", type=int, default=10)

    return parser


def main(argv: Optional[list[str]] = None) -> None:
    """Main entry point for CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    settings = Settings.load()
    setup_logging(settings.log_level, settings.log_file)
    cli = PaperTrailCLI(settings)

    if args.command == "serve":
        cli.cmd_serve(args.host, args.port)
    elif args.command == "list":
        cli.cmd_list(args.selected, args.limit)
    elif args.command == "add":
        cli.cmd_add(args.title, args.authors, args.year, args.venue, args.doi)
    elif args.command == "search":
        cli.cmd_search(args.query)
    elif args.command == "select":
        cli.cmd_select(args.ids, True)
    elif args.command == "deselect":
        cli.cmd_select(args.ids, False)
    elif args.command == "cite":
        cli.cmd_cite(args.id, args.style)
    elif args.command == "bibliography":
        cli.cmd_bibliography(args.style, args.export)
    elif args.command == "populate":
        cli.cmd_populate(args.topics, args.per_topic)
    elif args.command == "extract":
        cli.cmd_extract(args.file)
    elif args.command == "recommend":
        cli.cmd_recommend(args.message, args.limit)
