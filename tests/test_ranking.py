from papertrail.models.paper import Paper
from papertrail.services.ranking_service import RankingService, extract_keywords, paper_score


def _paper(pid, title="P", year=None, citations=0, topic=None, keywords=None, abstract=None):
    return Paper(
        id=pid,
        title=title,
        year=year,
        citation_count=citations,
        topic=topic,
        keywords=keywords,
        abstract=abstract,
    )


def test_extract_keywords_uses_vocabulary_in_order():
    assert extract_keywords("Any recent Quantum circuit papers?") == ["quantum", "quantum circuit"]
    assert extract_keywords("hello there") == []
    assert extract_keywords(None) == []


def test_score_defaults():
    assert round(paper_score(_paper("a")), 4) == 200.0
    assert round(paper_score(_paper("a", year=2023, citations=4)), 4) == 206.3


def test_citations_outweigh_recency():
    a = _paper("a", year=2020, citations=5, topic="quantum computing")
    b = _paper("b", year=2023, citations=0, topic="quantum computing")

    ranked = RankingService().rank([b, a], "quantum")

    assert [r.paper.id for r in ranked] == ["a", "b"]
    assert [r.score for r in ranked] == [207.0, 202.3]


def test_ties_keep_store_order():
    papers = [_paper(str(i), year=2022, keywords=["qubit"]) for i in range(3)]
    ranked = RankingService().recommend(papers, ["qubit"])
    assert [p.id for p in ranked] == ["0", "1", "2"]


def test_rank_limit_and_no_match():
    papers = [_paper(str(i), year=2000 + i, topic="machine learning") for i in range(15)]
    service = RankingService()

    assert len(service.rank(papers, "machine learning please")) == 10
    assert len(service.rank(papers, "machine learning please", limit=None)) == 15
    assert service.rank(papers, "nothing relevant") == []


def test_recommend_merged_deduplicates():
    a = _paper("a", year=2021, keywords=["qubit"])
    b = _paper("b", year=2022, topic="climate change")
    service = RankingService()

    merged = service.recommend_merged([a, b], keywords=["qubit"], prompt="qubit and climate change")
    assert [p.id for p in merged] == ["a", "b"]


def test_find_similar_by_shared_terms():
    base = _paper("base", title="Deep learning for climate model calibration")
    close = _paper("close", title="Climate model emulation", abstract="deep learning surrogate")
    partial = _paper("partial", title="A climate model study")
    unrelated = _paper("far", title="Medieval poetry")

    similar = RankingService().find_similar(base, [base, close, partial, unrelated])
    assert [p.id for p in similar] == ["close", "partial"]


def test_find_similar_without_terms_returns_other_papers():
    base = _paper("base", title="Medieval poetry")
    others = [_paper(str(i), title="x") for i in range(4)]
    similar = RankingService().find_similar(base, [base, *others], top_k=2)
    assert [p.id for p in similar] == ["0", "1"]
