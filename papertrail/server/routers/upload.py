"""Document upload and re-processing endpoints."""

import logging
from pathlib import Path
from typing import Any, Optional

from fastapi import APIRouter, Depends, File, UploadFile

from papertrail.server.errors import NotFoundError, PayloadTooLargeError, ValidationError
from papertrail.server.state import AppState, get_state
from papertrail.services.document_service import (
    extract_paper_data,
    is_allowed,
    stored_file_name,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/upload", tags=["upload"])

MAX_FILES = 10
NOT_ALLOWED = "Only PDF, DOC, and DOCX files are allowed!"
CHUNK_SIZE = 1024 * 1024


async def _store(file: UploadFile, state: AppState) -> tuple[Path, int]:
    """Validate *file* and stream it to the upload directory.

    Raises:
        ValidationError: If the file type is not allowed
        PayloadTooLargeError: As soon as the size limit is passed; the
            partial file is removed
    """
    if not is_allowed(file.filename, file.content_type):
        raise ValidationError(NOT_ALLOWED)

    limit = state.settings.max_upload_bytes
    path = state.settings.upload_dir / stored_file_name(file.filename or "")
    size = 0
    with open(path, "wb") as f:
        while True:
            chunk = await file.read(CHUNK_SIZE)
            if not chunk:
                break
            size += len(chunk)
            if size > limit:
                break
            f.write(chunk)

    if size > limit:
        path.unlink(missing_ok=True)
        raise PayloadTooLargeError(
            f"File exceeds the {state.settings.max_upload_mb}MB upload limit"
        )
    return path, size


def _uploaded_path(paper, state: AppState) -> Optional[Path]:
    """The paper's stored file, or None unless it lies in the upload directory."""
    if not paper.file_path:
        return None
    path = Path(paper.file_path).resolve()
    if not path.is_relative_to(state.settings.upload_dir.resolve()):
        logger.warning("Ignoring file outside the upload directory: %s", paper.file_path)
        return None
    return path


def _ingest(path: Path, original_name: str, size: int, state: AppState) -> dict[str, Any]:
    """Record the upload, extract the document and add it as a paper."""
    upload_id = state.db.uploads.record(path.name, str(path))
    try:
        paper_data = extract_paper_data(path, original_name, size)
        paper_id = state.db.papers.add(
            {**paper_data, "file_path": str(path), "file_name": path.name}
        )
    except Exception as e:
        state.db.uploads.update_status(upload_id, "failed", str(e))
        raise
    state.db.uploads.update_status(upload_id, "completed")
    return {
        "uploadId": upload_id,
        "paperId": paper_id,
        "filename": path.name,
        "title": paper_data["title"],
    }


@router.post("/paper")
async def upload_paper(paper: UploadFile = File(...), state: AppState = Depends(get_state)):
    path, size = await _store(paper, state)
    result = _ingest(path, paper.filename or path.name, size, state)
    return {"success": True, **result, "message": "Paper uploaded and processed successfully"}


@router.post("/papers")
async def upload_papers(
    papers: list[UploadFile] = File(...), state: AppState = Depends(get_state)
):
    if len(papers) > MAX_FILES:
        raise ValidationError(f"At most {MAX_FILES} files can be uploaded at once")

    uploaded: list[dict[str, Any]] = []
    errors: list[dict[str, Any]] = []
    for file in papers:
        try:
            path, size = await _store(file, state)
            uploaded.append({**_ingest(path, file.filename or path.name, size, state), "success": True})
        except Exception as e:
            logger.error("Error processing file %s: %s", file.filename, e)
            errors.append({"filename": file.filename, "error": str(e)})

    return {
        "success": True,
        "uploaded": uploaded,
        "errors": errors,
        "total_files": len(papers),
        "successful": len(uploaded),
        "failed": len(errors),
    }


@router.post("/process/{file_id}")
def process_paper(file_id: str, state: AppState = Depends(get_state)):
    """Re-extract a stored paper's file and merge the results into it."""
    paper = state.db.papers.get(file_id)
    if paper is None:
        raise NotFoundError("Paper not found")
    path = _uploaded_path(paper, state)
    if path is None:
        raise ValidationError("Paper has no uploaded file")

    size = path.stat().st_size if path.exists() else 0
    paper_data = extract_paper_data(path, paper.file_name or path.name, size)
    state.db.papers.update(file_id, paper_data)
    return {
        "success": True,
        "paperId": file_id,
        "updatedData": paper_data,
        "message": "Paper reprocessed successfully",
    }


@router.get("/status/{upload_id}")
def upload_status(upload_id: str, state: AppState = Depends(get_state)):
    upload = state.db.uploads.get(upload_id)
    if upload is None:
        raise NotFoundError("Upload not found")
    return {"success": True, "upload": upload.to_dict()}


@router.delete("/file/{file_id}")
def delete_file(file_id: str, state: AppState = Depends(get_state)):
    paper = state.db.papers.get(file_id)
    if paper is None:
        raise NotFoundError("Paper not found")

    path = _uploaded_path(paper, state)
    if path is not None:
        try:
            path.unlink()
        except OSError as e:
            logger.warning("Could not delete file %s: %s", path, e)

    state.db.papers.delete(file_id)
    return {"success": True, "message": "File and paper record deleted successfully"}
