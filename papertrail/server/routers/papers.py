"""Paper CRUD, search and selection endpoints."""

from typing import Any

from fastapi import APIRouter, Body, Depends, Query
from pydantic import BaseModel

from papertrail.server.errors import NotFoundError, ValidationError
from papertrail.server.state import AppState, get_state

router = APIRouter(prefix="/papers", tags=["papers"])

# Set only by the upload pipeline
SERVER_FIELDS = ("file_path", "file_name")


def _client_fields(data: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in data.items() if k not in SERVER_FIELDS}


class SelectionBody(BaseModel):
    isSelected: bool = False


def _require_paper(state: AppState, paper_id: str):
    paper = state.db.papers.get(paper_id)
    if paper is None:
        raise NotFoundError("Paper not found")
    return paper


# ============================================================================
# Collection
# ============================================================================


@router.get("")
def list_papers(state: AppState = Depends(get_state)):
    papers = [p.to_dict() for p in state.db.papers.all()]
    return {"success": True, "papers": papers, "count": len(papers)}


@router.post("", status_code=201)
def add_paper(data: dict[str, Any] = Body(...), state: AppState = Depends(get_state)):
    if not data.get("title"):
        raise ValidationError("Title is required")
    paper_id = state.db.papers.add(_client_fields(data))
    return {"success": True, "paperId": paper_id, "message": "Paper added successfully"}


@router.get("/search/{query}")
def search_papers(query: str, state: AppState = Depends(get_state)):
    if not query.strip():
        raise ValidationError("Search query is required")
    papers = [p.to_dict() for p in state.db.papers.search(query.strip())]
    return {"success": True, "papers": papers, "query": query, "count": len(papers)}


@router.get("/selected/list")
def selected_papers(state: AppState = Depends(get_state)):
    papers = [p.to_dict() for p in state.db.papers.filter_by_selection()]
    return {"success": True, "papers": papers, "count": len(papers)}


# ============================================================================
# Single paper
# ============================================================================


@router.get("/{paper_id}")
def get_paper(paper_id: str, state: AppState = Depends(get_state)):
    return {"success": True, "paper": _require_paper(state, paper_id).to_dict()}


@router.put("/{paper_id}")
def update_paper(
    paper_id: str, changes: dict[str, Any] = Body(...), state: AppState = Depends(get_state)
):
    state.db.papers.update(paper_id, _client_fields(changes))
    return {"success": True, "message": "Paper updated successfully"}


@router.delete("/{paper_id}")
def delete_paper(paper_id: str, state: AppState = Depends(get_state)):
    state.db.papers.delete(paper_id)
    return {"success": True, "message": "Paper deleted successfully"}


@router.patch("/{paper_id}/select")
def select_paper(paper_id: str, body: SelectionBody, state: AppState = Depends(get_state)):
    state.db.papers.set_selection(paper_id, body.isSelected)
    action = "selected" if body.isSelected else "deselected"
    return {"success": True, "message": f"Paper {action} successfully"}


@router.get("/{paper_id}/content")
def paper_content(paper_id: str, state: AppState = Depends(get_state)):
    paper = _require_paper(state, paper_id)
    return {
        "success": True,
        "paperId": paper.id,
        "title": paper.title,
        "content": paper.content_text or "Content not extracted yet",
        "abstract": paper.abstract,
        "hasContent": bool(paper.content_text),
    }


@router.get("/{paper_id}/similar")
def similar_papers(
    paper_id: str,
    limit: int = Query(5, ge=1, le=50),
    state: AppState = Depends(get_state),
):
    paper = _require_paper(state, paper_id)
    similar = state.ranking.find_similar(paper, state.db.papers.all(), top_k=limit)
    return {
        "success": True,
        "basePaper": paper.title,
        "similarPapers": [p.to_dict() for p in similar],
        "count": len(similar),
        "method": "keywords",
    }
