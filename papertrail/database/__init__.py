"""JSON-file persistence."""

from papertrail.database.repository import (
    ChatRepository,
    CitationRepository,
    Database,
    PaperRepository,
    ProjectRepository,
    UploadRepository,
)
from papertrail.database.storage import JsonStorage

__all__ = [
    "ChatRepository",
    "CitationRepository",
    "Database",
    "JsonStorage",
    "PaperRepository",
    "ProjectRepository",
    "UploadRepository",
]
