"""Repositories for papers, citations, chat history, projects and uploads.

Each repository keeps its whole collection in memory, loaded once when
constructed, and flushes the whole collection back to its JSON file on
every mutating call.  Callers only ever receive copies of the records.
"""

import copy
import uuid
from collections import Counter
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable, Optional, Union

from papertrail.database.storage import JsonStorage
from papertrail.models.paper import Paper
from papertrail.models.records import ChatMessage, Citation, Project, Upload
from papertrail.utils.text import matches_any

# Fields a patch may never overwrite
_IMMUTABLE_PAPER_FIELDS = {"id", "upload_date"}


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _new_id() -> str:
    return uuid.uuid4().hex


def _same_id(a: Any, b: Any) -> bool:
    """Ids are compared by string form (legacy files hold numeric ids)."""
    return a is not None and b is not None and str(a) == str(b)


class PaperRepository:
    """Repository for paper CRUD, search and selection."""

    def __init__(self, storage: JsonStorage):
        """Load all papers from *storage*.

        Args:
            storage: JSON storage holding ``papers.json``
        """
        self._storage = storage
        self._papers: list[Paper] = [
            Paper.from_dict(row) for row in storage.load("papers")
        ]

    def _flush(self) -> None:
        self._storage.save("papers", [p.to_dict() for p in self._papers])

    def _find(self, paper_id: Any) -> Optional[Paper]:
        return next((p for p in self._papers if _same_id(p.id, paper_id)), None)

    def _ordered(self, papers: Iterable[Paper]) -> list[Paper]:
        """Copies in natural order: most recently added first."""
        return [copy.deepcopy(p) for p in reversed(list(papers))]

    def add(self, paper: Union[Paper, dict[str, Any]]) -> str:
        """Insert a paper with a fresh id.

        ``upload_date`` is stamped now and ``is_selected`` starts False,
        whatever the input carried.

        Args:
            paper: Paper or plain dict of paper fields

        Returns:
            The new paper id
        """
        record = copy.deepcopy(paper) if isinstance(paper, Paper) else Paper.from_dict(paper)
        record.id = _new_id()
        record.upload_date = _now()
        record.is_selected = False
        self._papers.append(record)
        self._flush()
        return record.id

    def add_many(self, papers: Iterable[Union[Paper, dict[str, Any]]]) -> list[str]:
        """Insert several papers, one flush per paper."""
        return [self.add(p) for p in papers]

    def get(self, paper_id: Any) -> Optional[Paper]:
        """Find a single paper by id.

        Returns:
            A copy of the paper, or None if no paper has this id
        """
        paper = self._find(paper_id)
        return copy.deepcopy(paper) if paper is not None else None

    def all(self) -> list[Paper]:
        """All papers, newest first."""
        return self._ordered(self._papers)

    def update(self, paper_id: Any, changes: dict[str, Any]) -> None:
        """Shallow-merge *changes* into the paper; no-op if the id is unknown.

        ``id`` and ``upload_date`` are never overwritten, and an empty
        ``title`` leaves the existing title in place.
        """
        index = next(
            (i for i, p in enumerate(self._papers) if _same_id(p.id, paper_id)), None
        )
        if index is None:
            return

        current = self._papers[index]
        patch = {k: v for k, v in changes.items() if k not in _IMMUTABLE_PAPER_FIELDS}
        if not patch.get("title", current.title):
            patch.pop("title", None)

        merged = {**current.to_dict(), **patch}
        updated = Paper.from_dict(merged)
        updated.id = current.id
        updated.upload_date = current.upload_date
        self._papers[index] = updated
        self._flush()

    def delete(self, paper_id: Any) -> None:
        """Remove the paper; no-op if absent.  Citations are left alone."""
        before = len(self._papers)
        self._papers = [p for p in self._papers if not _same_id(p.id, paper_id)]
        if len(self._papers) != before:
            self._flush()

    def set_selection(self, paper_id: Any, selected: bool) -> None:
        """Set ``is_selected`` for one paper; no-op if absent."""
        paper = self._find(paper_id)
        if paper is None:
            return
        paper.is_selected = bool(selected)
        self._flush()

    def search(self, query: str) -> list[Paper]:
        """Case-insensitive substring match on title, authors or abstract."""
        term = (query or "").lower()
        return self._ordered(
            p
            for p in self._papers
            if term in (p.title or "").lower()
            or term in (p.authors or "").lower()
            or term in (p.abstract or "").lower()
        )

    def filter_by_selection(self) -> list[Paper]:
        """Papers in the active working set (``is_selected``)."""
        return self._ordered(p for p in self._papers if p.is_selected)

    def filter_by_keywords(self, keywords: Union[str, list[str]]) -> list[Paper]:
        """Papers whose ``keywords`` or ``topic`` contain any keyword.

        Args:
            keywords: One keyword or a list; matched as case-insensitive substrings

        Returns:
            Matching papers, newest first
        """
        keyword_list = [keywords] if isinstance(keywords, str) else list(keywords or [])
        return self._ordered(
            p
            for p in self._papers
            if matches_any(p.keywords, keyword_list) or matches_any(p.topic, keyword_list)
        )

    def filter_by_topic(self, topic: str) -> list[Paper]:
        """Papers with exactly this topic, by year then citation count (desc)."""
        wanted = (topic or "").strip().lower()
        papers = self._ordered(
            p for p in self._papers if (p.topic or "").strip().lower() == wanted
        )
        papers.sort(key=lambda p: (p.year or 0, p.citation_count), reverse=True)
        return papers

    def stats(self) -> dict[str, Any]:
        """Totals, selected count, per-topic counts and year distribution."""
        topics = Counter(p.topic for p in self._papers if p.topic)
        years = Counter(p.year for p in self._papers if p.year)
        return {
            "totalPapers": len(self._papers),
            "selectedPapers": sum(1 for p in self._papers if p.is_selected),
            "topics": dict(topics),
            "yearDistribution": {str(y): n for y, n in sorted(years.items())},
        }

    def clear(self) -> int:
        """Delete every paper.

        Returns:
            Number of papers removed
        """
        count = len(self._papers)
        self._papers = []
        self._flush()
        return count


class CitationRepository:
    """Append-only store of generated citations."""

    def __init__(self, storage: JsonStorage):
        self._storage = storage
        self._citations: list[Citation] = [
            Citation.from_dict(row) for row in storage.load("citations")
        ]

    def _flush(self) -> None:
        self._storage.save("citations", [c.to_dict() for c in self._citations])

    def add(self, citation: Citation) -> str:
        """Append a citation (duplicates per paper/style are allowed)."""
        record = copy.deepcopy(citation)
        record.id = _new_id()
        record.created_at = _now()
        self._citations.append(record)
        self._flush()
        return record.id

    def for_paper(self, paper_id: Any) -> list[Citation]:
        return [copy.deepcopy(c) for c in self._citations if _same_id(c.paper_id, paper_id)]

    def by_style(self, style: str) -> list[Citation]:
        wanted = (style or "").lower()
        return [copy.deepcopy(c) for c in self._citations if c.style.lower() == wanted]

    def clear(self) -> None:
        self._citations = []
        self._flush()


class ChatRepository:
    """Chat history grouped by session id."""

    def __init__(self, storage: JsonStorage):
        self._storage = storage
        self._messages: list[ChatMessage] = [
            ChatMessage.from_dict(row) for row in storage.load("chat")
        ]

    def _flush(self) -> None:
        self._storage.save("chat", [m.to_dict() for m in self._messages])

    def save_message(
        self,
        session_id: str,
        role: str,
        message: str,
        paper_context: Optional[Any] = None,
    ) -> str:
        """Append one message to a session.

        Returns:
            The new message id
        """
        record = ChatMessage(
            session_id=session_id,
            role=role,  # type: ignore[arg-type]
            message=message,
            paper_context=paper_context,
            id=_new_id(),
            timestamp=_now(),
        )
        self._messages.append(record)
        self._flush()
        return record.id  # type: ignore[return-value]

    def history(self, session_id: str, limit: int = 50) -> list[ChatMessage]:
        """The last *limit* messages of a session, oldest first."""
        messages = [m for m in self._messages if m.session_id == session_id]
        messages.sort(key=lambda m: m.timestamp or "")
        if limit > 0:
            messages = messages[-limit:]
        return [copy.deepcopy(m) for m in messages]

    def clear(self, session_id: str) -> None:
        """Delete all messages of a session."""
        self._messages = [m for m in self._messages if m.session_id != session_id]
        self._flush()

    def clear_all(self) -> None:
        self._messages = []
        self._flush()


class ProjectRepository:
    """Saved writing sessions, upserted by name."""

    def __init__(self, storage: JsonStorage):
        self._storage = storage
        self._projects: list[Project] = [
            Project.from_dict(row) for row in storage.load("projects")
        ]

    def _flush(self) -> None:
        self._storage.save("projects", [p.to_dict() for p in self._projects])

    def save(self, project: Union[Project, dict[str, Any]]) -> str:
        """Insert a project, or overwrite the one with the same name.

        An overwritten project keeps its id and ``created_at``.

        Returns:
            Id of the inserted or updated project
        """
        data = project.to_dict() if isinstance(project, Project) else dict(project)
        now = _now()

        for index, existing in enumerate(self._projects):
            if existing.name == data.get("name"):
                merged = {**existing.to_dict(), **data}
                merged.update(id=existing.id, created_at=existing.created_at, last_modified=now)
                self._projects[index] = Project.from_dict(merged)
                self._flush()
                return existing.id  # type: ignore[return-value]

        data.update(id=_new_id(), created_at=now, last_modified=now)
        record = Project.from_dict(data)
        self._projects.append(record)
        self._flush()
        return record.id  # type: ignore[return-value]

    def get(self, project_id: Any) -> Optional[Project]:
        project = next((p for p in self._projects if _same_id(p.id, project_id)), None)
        return copy.deepcopy(project) if project is not None else None

    def all(self) -> list[Project]:
        """All projects, most recently modified first."""
        projects = sorted(self._projects, key=lambda p: p.last_modified or "", reverse=True)
        return [copy.deepcopy(p) for p in projects]


class UploadRepository:
    """Records of file ingestion attempts."""

    def __init__(self, storage: JsonStorage):
        self._storage = storage
        self._uploads: list[Upload] = [
            Upload.from_dict(row) for row in storage.load("uploads")
        ]

    def _flush(self) -> None:
        self._storage.save("uploads", [u.to_dict() for u in self._uploads])

    def record(self, file_name: str, file_path: str) -> str:
        """Record a stored file, processing still pending.

        Returns:
            The new upload id
        """
        record = Upload(
            file_name=file_name,
            file_path=file_path,
            id=_new_id(),
            uploaded_at=_now(),
        )
        self._uploads.append(record)
        self._flush()
        return record.id  # type: ignore[return-value]

    def update_status(
        self, upload_id: Any, status: str, error_message: Optional[str] = None
    ) -> None:
        """Set ``processing_status`` (and the error, if any); no-op if absent."""
        upload = next((u for u in self._uploads if _same_id(u.id, upload_id)), None)
        if upload is None:
            return
        upload.processing_status = status  # type: ignore[assignment]
        if error_message:
            upload.error_message = error_message
        self._flush()

    def get(self, upload_id: Any) -> Optional[Upload]:
        upload = next((u for u in self._uploads if _same_id(u.id, upload_id)), None)
        return copy.deepcopy(upload) if upload is not None else None


class Database:
    """All repositories over one data directory."""

    def __init__(self, data_dir: Path):
        """Load every collection from *data_dir*.

        Args:
            data_dir: Directory holding the JSON documents
        """
        self.storage = JsonStorage(data_dir)
        self.papers = PaperRepository(self.storage)
        self.citations = CitationRepository(self.storage)
        self.chat = ChatRepository(self.storage)
        self.projects = ProjectRepository(self.storage)
        self.uploads = UploadRepository(self.storage)

    def clear(self) -> None:
        """Drop papers, citations and chat history (projects and uploads stay)."""
        self.papers.clear()
        self.citations.clear()
        self.chat.clear_all()
