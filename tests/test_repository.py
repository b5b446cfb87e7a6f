"""JSON store and repository behavior."""

import json

from papertrail.database.repository import Database
from papertrail.database.storage import JsonStorage
from papertrail.models.records import Citation


def test_added_paper_is_retrievable(db):
    paper_id = db.papers.add({"title": "Quantum Algorithms", "authors": "Smith, J.", "year": 2023})

    paper = db.papers.get(paper_id)
    assert paper is not None
    assert paper.id == paper_id
    assert paper.title == "Quantum Algorithms"
    assert paper.is_selected is False
    assert paper.upload_date


def test_add_ignores_client_selection_and_dates(db):
    paper_id = db.papers.add(
        {"title": "Sneaky", "is_selected": True, "upload_date": "1999-01-01", "id": "x"}
    )
    paper = db.papers.get(paper_id)
    assert paper.id != "x"
    assert paper.is_selected is False
    assert paper.upload_date != "1999-01-01"


def test_ids_are_unique(db):
    ids = {db.papers.add({"title": f"Paper {i}"}) for i in range(20)}
    assert len(ids) == 20


def test_all_is_newest_first(db):
    first = db.papers.add({"title": "First"})
    second = db.papers.add({"title": "Second"})
    assert [p.id for p in db.papers.all()] == [second, first]


def test_returned_papers_are_copies(db):
    paper_id = db.papers.add({"title": "Original"})
    paper = db.papers.get(paper_id)
    paper.title = "Changed"
    assert db.papers.get(paper_id).title == "Original"


def test_delete_removes_paper_and_is_noop_when_absent(db):
    paper_id = db.papers.add({"title": "Doomed"})
    db.papers.delete(paper_id)
    assert db.papers.get(paper_id) is None

    db.papers.delete("missing")
    assert db.papers.all() == []


def test_delete_keeps_citations(db):
    paper_id = db.papers.add({"title": "Cited"})
    db.citations.add(Citation(paper_id=paper_id, citation_text="x"))
    db.papers.delete(paper_id)
    assert len(db.citations.for_paper(paper_id)) == 1


def test_update_merges_and_protects_fields(db):
    paper_id = db.papers.add({"title": "Draft", "year": 2020})
    original = db.papers.get(paper_id)

    db.papers.update(paper_id, {"year": 2021, "id": "other", "upload_date": "never", "title": ""})

    paper = db.papers.get(paper_id)
    assert paper.year == 2021
    assert paper.title == "Draft"
    assert paper.id == paper_id
    assert paper.upload_date == original.upload_date


def test_update_unknown_id_is_noop(db):
    db.papers.update("missing", {"title": "Nothing"})
    assert db.papers.all() == []


def test_selection_and_filter(db):
    a = db.papers.add({"title": "A"})
    db.papers.add({"title": "B"})
    db.papers.set_selection(a, True)

    assert [p.id for p in db.papers.filter_by_selection()] == [a]

    db.papers.set_selection(a, False)
    assert db.papers.filter_by_selection() == []


def test_search_is_case_insensitive_over_title_authors_abstract(db):
    db.papers.add({"title": "Deep Nets", "authors": "Ada Lovelace"})
    db.papers.add({"title": "Other", "abstract": "about DEEP learning"})
    db.papers.add({"title": "Unrelated"})

    assert len(db.papers.search("deep")) == 2
    assert [p.title for p in db.papers.search("lovelace")] == ["Deep Nets"]


def test_non_text_values_are_searchable(db):
    db.papers.add({"title": 2024, "authors": 42, "abstract": None})

    [paper] = db.papers.search("42")
    assert paper.title == "2024"
    assert paper.authors == "42"


def test_filter_by_keywords_matches_keywords_and_topic(db):
    db.papers.add({"title": "A", "keywords": ["qubit", "gate"]})
    db.papers.add({"title": "B", "topic": "quantum computing"})
    db.papers.add({"title": "C", "topic": "climate change"})

    titles = {p.title for p in db.papers.filter_by_keywords(["QUBIT", "quantum"])}
    assert titles == {"A", "B"}


def test_filter_by_topic_orders_by_year_then_citations(db):
    db.papers.add({"title": "old", "topic": "ml", "year": 2019, "citation_count": 50})
    db.papers.add({"title": "new-low", "topic": "ml", "year": 2023, "citation_count": 1})
    db.papers.add({"title": "new-high", "topic": "ml", "year": 2023, "citation_count": 9})
    db.papers.add({"title": "other", "topic": "physics", "year": 2024})

    assert [p.title for p in db.papers.filter_by_topic("ML")] == ["new-high", "new-low", "old"]


def test_stats(db):
    a = db.papers.add({"title": "A", "topic": "ml", "year": 2022})
    db.papers.add({"title": "B", "topic": "ml", "year": 2023})
    db.papers.add({"title": "C"})
    db.papers.set_selection(a, True)

    stats = db.papers.stats()
    assert stats["totalPapers"] == 3
    assert stats["selectedPapers"] == 1
    assert stats["topics"] == {"ml": 2}
    assert stats["yearDistribution"] == {"2022": 1, "2023": 1}


def test_data_survives_reload(tmp_path):
    first = Database(tmp_path)
    paper_id = first.papers.add({"title": "Persisted", "authors": ["A One", "B Two"]})

    second = Database(tmp_path)
    paper = second.papers.get(paper_id)
    assert paper.title == "Persisted"
    assert paper.authors == "A One, B Two"


def test_numeric_legacy_ids_match_by_string(tmp_path):
    (tmp_path / "papers.json").write_text(json.dumps([{"id": 7, "title": "Legacy"}]))
    db = Database(tmp_path)
    assert db.papers.get("7").title == "Legacy"


def test_corrupt_file_is_treated_as_empty(tmp_path, caplog):
    (tmp_path / "papers.json").write_text("{not json")
    storage = JsonStorage(tmp_path)

    with caplog.at_level("WARNING"):
        assert storage.load("papers") == []
    assert "unreadable" in caplog.text


def test_unknown_fields_round_trip(db):
    paper_id = db.papers.add({"title": "Extra", "custom_field": "kept"})
    assert db.papers.get(paper_id).to_dict()["custom_field"] == "kept"


def test_citation_repository_by_style(db):
    db.citations.add(Citation(paper_id="1", citation_text="a", style="ieee"))
    db.citations.add(Citation(paper_id="1", citation_text="b", style="apa"))
    db.citations.add(Citation(paper_id="2", citation_text="c", style="ieee"))

    assert [c.citation_text for c in db.citations.by_style("IEEE")] == ["a", "c"]
    assert len(db.citations.for_paper("1")) == 2


def test_chat_history_keeps_last_messages_oldest_first(db):
    for i in range(5):
        db.chat.save_message("s1", "user", f"m{i}")
    db.chat.save_message("s2", "user", "elsewhere")

    history = db.chat.history("s1", limit=3)
    assert [m.message for m in history] == ["m2", "m3", "m4"]

    db.chat.clear("s1")
    assert db.chat.history("s1") == []
    assert len(db.chat.history("s2")) == 1


def test_project_save_upserts_by_name(db):
    first_id = db.projects.save({"name": "thesis", "title": "Draft"})
    created = db.projects.get(first_id).created_at

    second_id = db.projects.save({"name": "thesis", "title": "Final"})

    assert second_id == first_id
    project = db.projects.get(first_id)
    assert project.title == "Final"
    assert project.created_at == created
    assert len(db.projects.all()) == 1


def test_upload_status_updates(db):
    upload_id = db.uploads.record("paper-1.pdf", "/tmp/paper-1.pdf")
    assert db.uploads.get(upload_id).processing_status == "pending"

    db.uploads.update_status(upload_id, "failed", "boom")
    upload = db.uploads.get(upload_id)
    assert upload.processing_status == "failed"
    assert upload.error_message == "boom"


def test_database_clear_keeps_projects(db):
    db.papers.add({"title": "A"})
    db.citations.add(Citation(paper_id="1", citation_text="a"))
    db.chat.save_message("s", "user", "hi")
    db.projects.save({"name": "keep"})

    db.clear()

    assert db.papers.all() == []
    assert db.citations.by_style("ieee") == []
    assert db.chat.history("s") == []
    assert len(db.projects.all()) == 1
