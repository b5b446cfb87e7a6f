"""Citation generation, bibliography, extraction and formatting endpoints."""

from typing import Any, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from papertrail.server.errors import NotFoundError, ValidationError
from papertrail.server.state import AppState, get_state
from papertrail.services.citation_extractor import extract_citations
from papertrail.services.citation_formatter import (
    format_citations,
    in_text_citations,
    normalize_style,
    validate_citation,
)

router = APIRouter(prefix="/citations", tags=["citations"])


class StyleBody(BaseModel):
    style: str = "ieee"


class BibliographyBody(BaseModel):
    style: str = "ieee"
    format: str = "text"


class ExtractBody(BaseModel):
    text: Optional[str] = None


class FormatBody(BaseModel):
    style: str = "ieee"
    paperIds: list[Any] = []
    papers: list[dict[str, Any]] = []


@router.post("/generate/{paper_id}")
def generate_citation(
    paper_id: str, body: Optional[StyleBody] = None, state: AppState = Depends(get_state)
):
    style = (body or StyleBody()).style
    citation = state.citations.generate(paper_id, style)
    if citation is None:
        raise NotFoundError("Paper not found")
    return {"success": True, "paperId": paper_id, "style": style, "citation": citation}


@router.post("/selected")
def generate_selected(body: Optional[StyleBody] = None, state: AppState = Depends(get_state)):
    style = (body or StyleBody()).style
    citations = state.citations.generate_selected(style)
    if not citations:
        return {"success": True, "message": "No papers selected", "citations": []}
    return {
        "success": True,
        "style": style,
        "totalPapers": len(citations),
        "citations": citations,
    }


@router.get("/style/{style}")
def citations_by_style(style: str, state: AppState = Depends(get_state)):
    citations = state.citations.by_style(style)
    return {"success": True, "style": style, "count": len(citations), "citations": citations}


@router.post("/bibliography")
def bibliography(body: Optional[BibliographyBody] = None, state: AppState = Depends(get_state)):
    body = body or BibliographyBody()
    fmt = "json" if body.format == "json" else "text"
    entries = state.citations.bibliography(body.style, fmt)
    if not entries:
        return {
            "success": True,
            "message": "No citations found",
            "bibliography": [] if fmt == "json" else "",
        }
    count = len(entries) if fmt == "json" else len(state.citations.by_style(body.style))
    return {
        "success": True,
        "style": body.style,
        "format": fmt,
        "count": count,
        "bibliography": entries,
    }


@router.post("/extract")
def extract(body: ExtractBody):
    if not body.text:
        raise ValidationError("Text is required")
    markers = [m.to_dict() for m in extract_citations(body.text)]
    return {"success": True, "citations": markers, "count": len(markers)}


@router.post("/format")
def format_papers(body: FormatBody, state: AppState = Depends(get_state)):
    """Format stored papers (``paperIds``) or inline paper dicts (``papers``)."""
    if body.paperIds:
        stored = (state.db.papers.get(pid) for pid in body.paperIds)
        papers: list[Any] = [p for p in stored if p is not None]
    else:
        papers = list(body.papers)
    if not papers:
        raise ValidationError("No papers to format")

    style = normalize_style(body.style)
    warnings: list[dict[str, Any]] = []
    for paper in papers:
        valid, error = validate_citation(paper, style)
        if not valid:
            pid = paper.id if hasattr(paper, "id") else paper.get("id")
            warnings.append({"id": pid, "error": error})
    return {
        "success": True,
        "style": style,
        "citations": format_citations(papers, style),
        "inText": in_text_citations(papers, style),
        "warnings": warnings,
    }
