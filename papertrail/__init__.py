"""PaperTrail - research paper writing assistant backend.

Keeps a local library of papers (uploaded documents and ArXiv imports),
formats and extracts citations, recommends papers for a writing prompt
and drafts text through a local LLM.
"""

__version__ = "1.0.0"

from papertrail.config import Settings
from papertrail.models.paper import Paper

__all__ = ["Paper", "Settings", "__version__"]
