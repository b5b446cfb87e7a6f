"""Writing-assistant chat endpoints."""

from typing import Any, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from papertrail.server.errors import ValidationError
from papertrail.server.state import AppState, get_state
from papertrail.services.ranking_service import extract_keywords

router = APIRouter(prefix="/chat", tags=["chat"])


class MessageBody(BaseModel):
    message: Optional[str] = None
    selectedPapers: list[Any] = []
    sessionId: Optional[str] = None


class PopulateBody(BaseModel):
    section: Optional[str] = None
    selectedPapers: list[Any] = []
    currentContent: Optional[str] = None


class CiteBody(BaseModel):
    selectedPapers: list[Any] = []
    citationStyle: str = "ieee"


class SummarizeBody(BaseModel):
    selectedPapers: list[Any] = []
    summaryType: str = "general"


class SuggestionsBody(BaseModel):
    currentSection: Optional[str] = None
    selectedPapers: list[Any] = []
    currentContent: Optional[str] = None


class RecommendationsBody(BaseModel):
    message: Optional[str] = None
    keywords: list[str] = []
    limit: int = 5


@router.post("/message")
async def send_message(body: MessageBody, state: AppState = Depends(get_state)):
    if not body.message:
        raise ValidationError("Message is required")
    result = await state.assistant.message(body.message, body.selectedPapers, body.sessionId)
    return {"success": True, **result}


@router.get("/history/{session_id}")
def chat_history(
    session_id: str,
    limit: int = Query(50, ge=1),
    state: AppState = Depends(get_state),
):
    history = [m.to_dict() for m in state.db.chat.history(session_id, limit)]
    return {"success": True, "history": history}


@router.delete("/history/{session_id}")
def clear_history(session_id: str, state: AppState = Depends(get_state)):
    state.db.chat.clear(session_id)
    return {"success": True, "message": "Chat history cleared"}


@router.post("/populate")
async def populate_section(body: PopulateBody, state: AppState = Depends(get_state)):
    if not body.section:
        raise ValidationError("Section type is required")
    content = await state.assistant.populate(body.section, body.selectedPapers, body.currentContent)
    return {
        "success": True,
        "content": content,
        "section": body.section,
        "papersUsed": len(body.selectedPapers),
    }


@router.post("/cite")
async def draft_citations(body: CiteBody, state: AppState = Depends(get_state)):
    if not body.selectedPapers:
        raise ValidationError("No papers selected for citation")
    text = await state.assistant.cite(body.selectedPapers, body.citationStyle)
    return {
        "success": True,
        "citations": text,
        "style": body.citationStyle,
        "count": len(body.selectedPapers),
    }


@router.post("/summarize")
async def summarize(body: SummarizeBody, state: AppState = Depends(get_state)):
    if not body.selectedPapers:
        raise ValidationError("No papers selected for summarization")
    summary = await state.assistant.summarize(body.selectedPapers, body.summaryType)
    return {
        "success": True,
        "summary": summary,
        "type": body.summaryType,
        "papersCount": len(body.selectedPapers),
    }


@router.post("/suggestions")
async def suggestions(body: SuggestionsBody, state: AppState = Depends(get_state)):
    items = await state.assistant.suggestions(
        body.currentSection, body.selectedPapers, body.currentContent
    )
    return {"success": True, "suggestions": items}


@router.post("/recommendations")
def recommendations(body: RecommendationsBody, state: AppState = Depends(get_state)):
    papers = state.db.papers.all()
    if body.message:
        found = state.ranking.recommend(papers, body.message)
    elif body.keywords:
        found = state.ranking.recommend(papers, body.keywords, limit=None)
    else:
        found = []
    return {
        "success": True,
        "recommendedPapers": [p.to_dict() for p in found[: body.limit]],
        "totalFound": len(found),
        "searchCriteria": {
            "message": body.message,
            "keywords": body.keywords or extract_keywords(body.message),
        },
    }
