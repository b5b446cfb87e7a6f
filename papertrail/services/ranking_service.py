"""Keyword-overlap paper recommendation.

A message is reduced to the academic terms it mentions (a fixed
vocabulary, matched as case-insensitive substrings).  Stored papers whose
``keywords`` or ``topic`` mention any of those terms are candidates, and
candidates are ordered by a recency/impact score::

    score = year * 0.1 + citation_count

with ``year`` defaulting to 2000 and ``citation_count`` to 0.
"""

from dataclasses import dataclass
from typing import Iterable, Optional, Union

from papertrail.models.paper import Paper
from papertrail.utils.text import matches_any

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------
DEFAULT_YEAR = 2000
YEAR_WEIGHT = 0.1
DEFAULT_LIMIT = 10

ACADEMIC_VOCABULARY: tuple[str, ...] = (
    # Machine learning
    "machine learning", "neural network", "deep learning", "algorithm", "model",
    "artificial intelligence", "AI", "classification", "regression", "clustering",
    "supervised learning", "unsupervised learning", "reinforcement learning",
    "computer vision", "natural language processing", "nlp", "data mining",
    "big data", "statistics", "probability", "bayesian", "optimization",
    # Quantum computing
    "quantum computing", "quantum", "qubit", "entanglement", "superposition",
    "quantum algorithm", "quantum gate", "quantum circuit", "quantum mechanics",
    "quantum information", "quantum cryptography", "quantum simulation",
    # Climate
    "climate change", "global warming", "carbon", "emission", "greenhouse",
    "environmental", "atmosphere", "temperature", "climate model",
    "sustainability", "renewable energy", "carbon footprint", "biodiversity",
    # General science
    "research", "analysis", "experiment", "methodology", "dataset",
    "evaluation", "performance", "accuracy", "precision", "recall",
    "validation", "testing", "training", "simulation", "modeling",
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def extract_keywords(text: Optional[str]) -> list[str]:
    """Vocabulary terms mentioned in *text*, in vocabulary order, no repeats."""
    if not text:
        return []
    lower = text.lower()
    return [term for term in ACADEMIC_VOCABULARY if term.lower() in lower]


def paper_score(paper: Paper) -> float:
    """Recency/impact score used to order recommendations."""
    return (paper.year or DEFAULT_YEAR) * YEAR_WEIGHT + (paper.citation_count or 0)


@dataclass
class RankedPaper:
    """A paper annotated with its recommendation score."""

    paper: Paper
    score: float


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------
class RankingService:
    """Scores and orders stored papers for a message or keyword list."""

    def candidates(self, papers: Iterable[Paper], keywords: list[str]) -> list[Paper]:
        """Papers whose ``keywords`` or ``topic`` mention any keyword."""
        if not keywords:
            return []
        return [
            p
            for p in papers
            if matches_any(p.keywords, keywords) or matches_any(p.topic, keywords)
        ]

    def rank(
        self,
        papers: Iterable[Paper],
        query: Union[str, list[str], None],
        limit: Optional[int] = DEFAULT_LIMIT,
    ) -> list[RankedPaper]:
        """Rank the papers that match *query*.

        Args:
            papers: Papers in store order (used to break score ties)
            query: A free-text message (reduced with :func:`extract_keywords`)
                or an explicit keyword list
            limit: Maximum results; None for all

        Returns:
            RankedPaper list, best score first
        """
        keywords = extract_keywords(query) if isinstance(query, str) else list(query or [])
        ranked = [
            RankedPaper(paper=p, score=round(paper_score(p), 4))
            for p in self.candidates(papers, keywords)
        ]
        # sort() is stable, so equal scores keep store order
        ranked.sort(key=lambda r: r.score, reverse=True)
        return ranked[:limit] if limit is not None else ranked

    def recommend(
        self,
        papers: Iterable[Paper],
        query: Union[str, list[str], None],
        limit: Optional[int] = DEFAULT_LIMIT,
    ) -> list[Paper]:
        """Same as :meth:`rank` but returns only the papers."""
        return [r.paper for r in self.rank(papers, query, limit)]

    def recommend_merged(
        self,
        papers: list[Paper],
        keywords: Optional[list[str]] = None,
        prompt: Optional[str] = None,
        limit: int = DEFAULT_LIMIT,
    ) -> list[Paper]:
        """Union of keyword-list and prompt recommendations, deduplicated by id.

        Keyword matches come first, then prompt matches not already listed.
        """
        merged: list[Paper] = []
        seen: set[Optional[str]] = set()
        for query in (keywords, prompt):
            if not query:
                continue
            for paper in self.recommend(papers, query, limit=None):
                if paper.id in seen:
                    continue
                seen.add(paper.id)
                merged.append(paper)
        return merged[:limit]

    def find_similar(self, paper: Paper, library: list[Paper], top_k: int = 5) -> list[Paper]:
        """Library papers sharing vocabulary terms with *paper*.

        Terms come from the paper's title and abstract.  Other papers are
        ordered by how many of those terms they mention, then by score.  If
        the paper mentions no vocabulary term, the first *top_k* other
        papers are returned in store order.
        """
        others = [p for p in library if p.id != paper.id]
        terms = extract_keywords(f"{paper.title or ''} {paper.abstract or ''}")
        if not terms:
            return others[:top_k]

        def overlap(other: Paper) -> int:
            text = " ".join(
                str(v)
                for v in (other.title, other.abstract, other.keywords, other.topic)
                if v
            ).lower()
            return sum(1 for t in terms if t.lower() in text)

        scored = [(overlap(p), paper_score(p), p) for p in others]
        scored = [s for s in scored if s[0] > 0]
        scored.sort(key=lambda s: (s[0], s[1]), reverse=True)
        return [p for _, _, p in scored[:top_k]]
