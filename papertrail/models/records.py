"""Citation, chat, project and upload records."""

from dataclasses import asdict, dataclass, field, fields
from typing import Any, Literal, Optional

ProcessingStatus = Literal["pending", "completed", "failed"]
Role = Literal["user", "assistant"]


class _Record:
    """JSON (de)serialization shared by the flat record types."""

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)  # type: ignore[call-overload]

    @classmethod
    def from_dict(cls, data: dict[str, Any]):
        known = {f.name for f in fields(cls)}  # type: ignore[arg-type]
        kwargs = {k: v for k, v in data.items() if k in known}
        if kwargs.get("id") is not None:
            kwargs["id"] = str(kwargs["id"])
        return cls(**kwargs)


@dataclass
class Citation(_Record):
    """A rendered, style-specific reference to a paper.

    ``paper_id`` is not enforced; it may point at a deleted paper.
    """

    paper_id: str
    citation_text: str
    style: str = "ieee"
    in_text_citation: str = ""
    id: Optional[str] = None
    created_at: Optional[str] = None


@dataclass
class ChatMessage(_Record):
    """One turn of a chat session."""

    session_id: str
    role: Role
    message: str
    paper_context: Optional[Any] = None
    id: Optional[str] = None
    timestamp: Optional[str] = None


@dataclass
class Project(_Record):
    """A saved writing session, keyed by ``name``."""

    name: str
    title: Optional[str] = None
    sections: dict[str, str] = field(default_factory=dict)
    metadata: dict[str, Any] = field(default_factory=dict)
    id: Optional[str] = None
    created_at: Optional[str] = None
    last_modified: Optional[str] = None


@dataclass
class Upload(_Record):
    """A file ingestion attempt."""

    file_name: str
    file_path: str
    upload_status: str = "completed"
    processing_status: ProcessingStatus = "pending"
    error_message: Optional[str] = None
    id: Optional[str] = None
    uploaded_at: Optional[str] = None
