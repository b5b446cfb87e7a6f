"""Record types."""

from papertrail.models.paper import Paper
from papertrail.models.records import ChatMessage, Citation, Project, Upload

__all__ = ["ChatMessage", "Citation", "Paper", "Project", "Upload"]
