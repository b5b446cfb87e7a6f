"""Whole-file JSON persistence for the record collections."""

import json
import logging
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

# collection name → file name under the data directory
DOCUMENTS: dict[str, str] = {
    "papers": "papers.json",
    "citations": "citations.json",
    "chat": "chat_history.json",
    "projects": "projects.json",
    "uploads": "uploads.json",
}


class JsonStorage:
    """Reads and writes each collection as one JSON array file.

    There are no incremental writes: ``save()`` rewrites the whole file.
    """

    def __init__(self, data_dir: Path):
        """Initialize storage rooted at *data_dir* (created if missing).

        Args:
            data_dir: Directory holding the JSON documents
        """
        self.data_dir = Path(data_dir)
        self.data_dir.mkdir(parents=True, exist_ok=True)

    def path_for(self, name: str) -> Path:
        """Return the file path backing collection *name*."""
        return self.data_dir / DOCUMENTS[name]

    def load(self, name: str) -> list[dict[str, Any]]:
        """Load collection *name*.

        A missing file is an empty collection.  So is an unparseable one:
        the old contents are ignored (and overwritten by the next save),
        which is logged as a warning.
        """
        path = self.path_for(name)
        if not path.exists():
            return []
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning("Ignoring unreadable data file %s (treated as empty): %s", path, e)
            return []
        if not isinstance(data, list):
            logger.warning("Ignoring data file %s: expected a JSON array", path)
            return []
        return [row for row in data if isinstance(row, dict)]

    def save(self, name: str, records: list[dict[str, Any]]) -> None:
        """Write collection *name* back to disk in full."""
        path = self.path_for(name)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(records, f, ensure_ascii=False, indent=2)
