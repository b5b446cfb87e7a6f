"""Service layer."""

from papertrail.services.arxiv_service import ArxivError, ArxivService
from papertrail.services.citation_service import CitationService
from papertrail.services.export_service import BibliographyExporter
from papertrail.services.llm_service import (
    AssistantService,
    FallbackGenerator,
    LLMUnavailableError,
    LocalGenerator,
    OllamaGenerator,
    TextGenerator,
    build_generator,
)
from papertrail.services.ranking_service import RankedPaper, RankingService

__all__ = [
    "ArxivError",
    "ArxivService",
    "AssistantService",
    "BibliographyExporter",
    "CitationService",
    "FallbackGenerator",
    "LLMUnavailableError",
    "LocalGenerator",
    "OllamaGenerator",
    "RankedPaper",
    "RankingService",
    "TextGenerator",
    "build_generator",
]
