"""ArXiv ingestion, topic browsing and recommendation endpoints."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from papertrail.server.errors import UpstreamError, ValidationError
from papertrail.server.state import AppState, get_state
from papertrail.services.arxiv_service import ArxivError
from papertrail.services.ranking_service import extract_keywords

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/arxiv", tags=["arxiv"])


class PopulateBody(BaseModel):
    topics: Optional[list[str]] = None
    papersPerTopic: Optional[int] = None


class SearchBody(BaseModel):
    query: Optional[str] = None
    maxResults: int = 10


class RecommendationsBody(BaseModel):
    keywords: list[str] = []
    prompt: Optional[str] = None
    limit: int = 10


class ClearBody(BaseModel):
    confirm: Optional[str] = None


@router.post("/populate")
def populate(body: Optional[PopulateBody] = None, state: AppState = Depends(get_state)):
    body = body or PopulateBody()
    topics = body.topics or state.settings.arxiv.default_topics
    per_topic = body.papersPerTopic or state.settings.arxiv.papers_per_topic

    logger.info("Populating from ArXiv: %s (%d per topic)", ", ".join(topics), per_topic)
    try:
        papers = state.arxiv.fetch_for_topics(topics, per_topic)
    except ArxivError as e:
        raise UpstreamError(str(e)) from e

    paper_ids = state.db.papers.add_many(papers)
    logger.info("Saved %d ArXiv papers", len(paper_ids))
    return {
        "success": True,
        "message": f"Successfully populated database with {len(paper_ids)} papers",
        "topics": topics,
        "papersAdded": len(paper_ids),
        "papers": [
            {
                "id": paper_id,
                "arxiv_id": p["arxiv_id"],
                "title": p["title"],
                "authors": p["authors"],
                "topic": p["topic"],
                "year": p["year"],
            }
            for paper_id, p in zip(paper_ids, papers)
        ],
    }


@router.post("/search")
def search(body: SearchBody, state: AppState = Depends(get_state)):
    if not body.query:
        raise ValidationError("Query is required")
    try:
        papers = state.arxiv.search(body.query, body.maxResults)
    except ArxivError as e:
        raise UpstreamError(str(e)) from e
    return {"success": True, "query": body.query, "results": len(papers), "papers": papers}


@router.get("/stats")
def stats(state: AppState = Depends(get_state)):
    return {"success": True, "stats": state.db.papers.stats()}


@router.get("/topics/{topic}")
def papers_by_topic(topic: str, state: AppState = Depends(get_state)):
    if not topic.strip():
        raise ValidationError("Topic is required")
    papers = [p.to_dict() for p in state.db.papers.filter_by_topic(topic)]
    return {"success": True, "topic": topic, "count": len(papers), "papers": papers}


@router.post("/recommendations")
def recommendations(body: RecommendationsBody, state: AppState = Depends(get_state)):
    papers = state.ranking.recommend_merged(
        state.db.papers.all(), body.keywords, body.prompt, body.limit
    )
    return {
        "success": True,
        "recommendedPapers": [p.to_dict() for p in papers],
        "totalFound": len(papers),
        "searchCriteria": {
            "keywords": body.keywords,
            "extractedKeywords": extract_keywords(body.prompt),
            "prompt": body.prompt,
        },
    }


@router.post("/clear")
def clear(body: Optional[ClearBody] = None, state: AppState = Depends(get_state)):
    if body is None or body.confirm != "yes":
        raise ValidationError('Please confirm database clearing by sending { "confirm": "yes" }')
    state.db.clear()
    return {"success": True, "message": "Database cleared successfully"}
