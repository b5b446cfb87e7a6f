"""Text extraction from uploaded PDF, DOC and DOCX files."""

import logging
import random
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

import fitz  # PyMuPDF
from docx import Document

from papertrail.services.metadata_extractor import extract_metadata, extract_year
from papertrail.utils.text import find_doi

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = {".pdf", ".doc", ".docx"}
ALLOWED_MIME_MARKERS = ("pdf", "msword", "wordprocessingml")
EXTRACTION_FAILED = "Content extraction failed"


class UnsupportedFileError(ValueError):
    """Raised for files outside the PDF/DOC/DOCX allow-list."""


def is_allowed(file_name: Optional[str], content_type: Optional[str] = None) -> bool:
    """Whether an upload passes the extension and MIME-type allow-list.

    The extension must be pdf, doc or docx.  A MIME type, when given, must
    mention pdf, msword or wordprocessingml.
    """
    if Path(file_name or "").suffix.lower() not in ALLOWED_EXTENSIONS:
        return False
    if content_type and content_type != "application/octet-stream":
        return any(marker in content_type.lower() for marker in ALLOWED_MIME_MARKERS)
    return True


def stored_file_name(original_name: str) -> str:
    """Unique on-disk name: ``paper-<ms timestamp>-<random><ext>``."""
    ext = Path(original_name).suffix.lower()
    return f"paper-{int(time.time() * 1000)}-{random.randint(0, 10**9 - 1)}{ext}"


def read_pdf(path: Path) -> str:
    doc = fitz.open(str(path))
    try:
        return "".join(page.get_text() for page in doc)
    finally:
        doc.close()


def read_docx(path: Path) -> str:
    document = Document(str(path))
    return "\n".join(p.text for p in document.paragraphs)


def read_doc(path: Path) -> str:
    # Legacy binary .doc: best-effort lossy decode
    return Path(path).read_bytes().decode("utf-8", errors="replace")


_READERS = {".pdf": read_pdf, ".docx": read_docx, ".doc": read_doc}


def extract_text(path: Path, ext: Optional[str] = None) -> str:
    """Full text of the document at *path*.

    Args:
        path: File on disk
        ext: Extension deciding the reader (defaults to the path's suffix)

    Raises:
        UnsupportedFileError: If the extension has no reader
    """
    ext = (ext or Path(path).suffix).lower()
    reader = _READERS.get(ext)
    if reader is None:
        raise UnsupportedFileError(f"Unsupported file type: {ext}")
    return reader(Path(path))


def extract_paper_data(path: Path, original_name: Optional[str] = None, size: int = 0) -> dict[str, Any]:
    """Build paper fields from an uploaded document.

    Reading failures do not raise: the title falls back to the file name
    stem and the content to a fixed marker.

    Args:
        path: Stored file
        original_name: Name the client uploaded the file under
        size: File size in bytes

    Returns:
        Dict of paper fields (title, authors, abstract, content_text, year,
        doi, metadata)
    """
    name = original_name or Path(path).name
    ext = Path(name).suffix.lower()
    stem = Path(name).stem

    authors = ""
    abstract = ""
    try:
        content = extract_text(path, ext)
        meta = extract_metadata(content)
        title = meta.title or stem
        authors = meta.authors
        abstract = meta.abstract
    except Exception as e:
        logger.warning("Text extraction failed for %s: %s", name, e)
        title = stem
        content = EXTRACTION_FAILED

    return {
        "title": title,
        "authors": authors,
        "abstract": abstract,
        "content_text": content,
        "year": extract_year(content),
        "doi": find_doi(content),
        "metadata": {
            "fileType": ext,
            "fileSize": size or 0,
            "extractedAt": datetime.now(timezone.utc).isoformat(),
        },
    }
