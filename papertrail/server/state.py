"""Runtime services shared by the request handlers."""

from typing import Optional

from fastapi import Request

from papertrail.config import Settings
from papertrail.database.repository import Database
from papertrail.services.arxiv_service import ArxivService
from papertrail.services.citation_service import CitationService
from papertrail.services.export_service import BibliographyExporter
from papertrail.services.llm_service import AssistantService, TextGenerator, build_generator
from papertrail.services.ranking_service import RankingService


class AppState:
    """All services for one app instance, built from its settings."""

    def __init__(
        self,
        settings: Settings,
        generator: Optional[TextGenerator] = None,
        arxiv: Optional[ArxivService] = None,
    ):
        """Build the store and services.

        Args:
            settings: Application settings
            generator: Text generator (defaults to :func:`build_generator`)
            arxiv: ArXiv client (defaults to one built from ``settings.arxiv``)
        """
        self.settings = settings
        self.db = Database(settings.data_dir)
        self.ranking = RankingService()
        self.citations = CitationService(self.db.papers, self.db.citations)
        self.assistant = AssistantService(
            generator or build_generator(settings),
            self.db.papers,
            self.db.chat,
            self.ranking,
        )
        self.arxiv = arxiv or ArxivService(
            base_url=settings.arxiv.base_url,
            timeout=settings.arxiv.timeout,
            delay=settings.arxiv.delay,
        )
        self.exporter = BibliographyExporter(settings.export_dir)

        settings.upload_dir.mkdir(parents=True, exist_ok=True)


def get_state(request: Request) -> AppState:
    """FastAPI dependency returning the app's :class:`AppState`."""
    return request.app.state.papertrail
