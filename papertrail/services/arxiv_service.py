"""ArXiv query API client and ingestion into the paper store."""

import logging
import re
import time
from typing import Any, Callable, Optional

import feedparser
import requests

from papertrail.database.repository import PaperRepository
from papertrail.utils.text import clean_title, collapse_whitespace, parse_year

logger = logging.getLogger(__name__)

ARXIV_API_URL = "http://export.arxiv.org/api/query"
ARXIV_VENUE = "arXiv"

# Topics with a tuned category query; any other topic is a phrase search
TOPIC_QUERIES = {
    "machine learning": "all:machine AND all:learning AND (cat:cs.LG OR cat:cs.AI OR cat:stat.ML)",
    "quantum computing": "all:quantum AND all:computing AND (cat:quant-ph OR cat:cs.ET)",
    "climate change": "all:climate AND all:change AND (cat:physics.ao-ph OR cat:physics.geo-ph)",
}

# Terms looked up in the abstract to fill a paper's keywords
TOPIC_KEYWORDS = {
    "machine learning": [
        "neural", "network", "algorithm", "model", "training", "deep",
        "classification", "regression",
    ],
    "quantum computing": [
        "qubit", "quantum", "entanglement", "superposition", "gate", "circuit", "algorithm",
    ],
    "climate change": [
        "temperature", "carbon", "emission", "warming", "atmosphere", "greenhouse",
        "environmental",
    ],
}

_ARXIV_ID_RE = re.compile(r"abs/(.+)$")


class ArxivError(RuntimeError):
    """An ArXiv request or response could not be processed."""


def build_search_query(topic: str) -> str:
    """ArXiv ``search_query`` for *topic*."""
    return TOPIC_QUERIES.get(topic.lower(), f'all:"{topic}"')


def topic_keywords(abstract: str, topic: str) -> list[str]:
    """The topic's keyword terms that appear in *abstract*."""
    lower = (abstract or "").lower()
    return [k for k in TOPIC_KEYWORDS.get(topic.lower(), []) if k in lower]


def _arxiv_id(url: str) -> str:
    match = _ARXIV_ID_RE.search(url or "")
    return match.group(1) if match else url


def _pdf_url(entry: Any) -> Optional[str]:
    for link in entry.get("links", []):
        if link.get("type") == "application/pdf":
            return link.get("href")
    return None


def parse_feed(content: Any, topic: str) -> list[dict[str, Any]]:
    """Turn an ArXiv Atom response into paper dicts.

    Args:
        content: Raw Atom XML (bytes or str)
        topic: Topic label stored on every paper

    Returns:
        Paper field dicts, in feed order
    """
    parsed = feedparser.parse(content)
    papers = []
    for entry in parsed.entries:
        entry_url = entry.get("id", "")
        abstract = collapse_whitespace(entry.get("summary", ""))
        published = entry.get("published") or None
        authors = [a.get("name", "") for a in entry.get("authors", []) if a.get("name")]
        papers.append(
            {
                "arxiv_id": _arxiv_id(entry_url),
                "title": clean_title(entry.get("title", "")),
                "authors": ", ".join(authors) or "Unknown",
                "abstract": abstract,
                "published": published,
                "updated": entry.get("updated") or published,
                "url": entry_url,
                "pdf_url": _pdf_url(entry),
                "categories": [t.get("term") for t in entry.get("tags", []) if t.get("term")],
                "topic": topic,
                "venue": ARXIV_VENUE,
                "year": parse_year(published),
                "citation_count": 0,
                "keywords": topic_keywords(abstract, topic),
            }
        )
    return papers


class ArxivService:
    """Service for fetching papers from the ArXiv query API."""

    def __init__(
        self,
        base_url: str = ARXIV_API_URL,
        timeout: float = 30.0,
        delay: float = 1.0,
        session: Optional[requests.Session] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """Initialize the client.

        Args:
            base_url: Query API endpoint
            timeout: Per-request timeout in seconds
            delay: Pause after each topic request (seconds)
            session: requests session to send requests with
            sleep: Function used to pause between topics
        """
        self.base_url = base_url
        self.timeout = timeout
        self.delay = delay
        self.session = session or requests.Session()
        self.sleep = sleep

    def _query(self, search_query: str, max_results: int, label: str) -> list[dict[str, Any]]:
        params = {
            "search_query": search_query,
            "start": 0,
            "max_results": max_results,
            "sortBy": "relevance",
            "sortOrder": "descending",
        }
        try:
            response = self.session.get(self.base_url, params=params, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            raise ArxivError(f"Failed to fetch papers for {label}: {e}") from e
        return parse_feed(response.content, label)

    def fetch_topic(self, topic: str, max_results: int = 20) -> list[dict[str, Any]]:
        """Fetch up to *max_results* papers for one topic.

        Raises:
            ArxivError: If the request fails
        """
        logger.info("Fetching ArXiv papers for topic: %s", topic)
        papers = self._query(build_search_query(topic), max_results, topic)
        logger.info("Fetched %d papers for %s", len(papers), topic)
        return papers

    def fetch_for_topics(self, topics: list[str], per_topic: int = 20) -> list[dict[str, Any]]:
        """Fetch every topic in turn, pausing ``delay`` seconds after each.

        The first failing topic aborts the whole batch.
        """
        papers: list[dict[str, Any]] = []
        for topic in topics:
            papers.extend(self.fetch_topic(topic, per_topic))
            self.sleep(self.delay)
        logger.info("Fetched %d papers across %d topics", len(papers), len(topics))
        return papers

    def search(self, query: str, max_results: int = 10) -> list[dict[str, Any]]:
        """Phrase search across all ArXiv fields (topic label ``search``)."""
        return self._query(f'all:"{query}"', max_results, "search")

    def populate(
        self, store: PaperRepository, topics: list[str], per_topic: int = 20
    ) -> list[str]:
        """Fetch *topics* and add every paper to *store*.

        Returns:
            Ids of the added papers
        """
        return store.add_many(self.fetch_for_topics(topics, per_topic))
