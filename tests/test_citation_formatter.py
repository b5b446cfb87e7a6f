from datetime import date

import pytest

from papertrail.models.paper import Paper
from papertrail.services.citation_formatter import (
    first_author,
    format_citation,
    format_citations,
    in_text_citation,
    in_text_citations,
    last_name,
    normalize_style,
    validate_citation,
)

PAPER = {
    "id": "p1",
    "title": "Attention Is All You Need",
    "authors": "Ashish Vaswani, Noam Shazeer",
    "year": 2017,
    "venue": "NeurIPS",
}


def test_ieee_full_record():
    assert format_citation(PAPER, "ieee") == (
        'Ashish Vaswani, Noam Shazeer, "Attention Is All You Need," NeurIPS, 2017.'
    )


def test_ieee_title_only_uses_placeholders():
    assert format_citation({"title": "X"}, "ieee") == 'Unknown Author, "X," Unknown Venue, Unknown Year.'
    assert format_citation({}, "ieee") == 'Unknown Author, "Untitled," Unknown Venue, Unknown Year.'


def test_ieee_more_than_three_authors_uses_et_al():
    paper = {**PAPER, "authors": "A One, B Two, C Three, D Four"}
    assert format_citation(paper, "ieee").startswith('A One et al., "Attention')


def test_ieee_exactly_three_authors_lists_all():
    paper = {**PAPER, "authors": "A One, B Two, C Three"}
    assert format_citation(paper, "ieee").startswith('A One, B Two, C Three, "')


def test_apa():
    assert format_citation(PAPER, "apa") == "Ashish Vaswani (2017). Attention Is All You Need. NeurIPS."


def test_mla_without_year():
    paper = {**PAPER, "year": None}
    assert format_citation(paper, "mla") == 'Ashish Vaswani. "Attention Is All You Need." NeurIPS, n.d..'


def test_chicago():
    assert format_citation(PAPER, "chicago") == (
        'Ashish Vaswani. "Attention Is All You Need." NeurIPS (2017).'
    )


def test_venue_falls_back_to_journal_then_conference_then_default():
    paper = {"title": "T", "authors": "A B", "year": 2020}
    assert "Nature" in format_citation({**paper, "journal": "Nature"})
    assert "ICML" in format_citation({**paper, "conference": "ICML"})
    assert "arXiv" in format_citation(paper, default_venue="arXiv")


@pytest.mark.parametrize("style", ["harvard", "", None])
def test_unknown_style_renders_as_ieee(style):
    assert format_citation(PAPER, style) == format_citation(PAPER, "ieee")


def test_style_is_case_insensitive():
    assert normalize_style("APA") == "apa"
    assert format_citation(PAPER, "APA") == format_citation(PAPER, "apa")


def test_paper_instances_are_accepted():
    paper = Paper(title="Quantum Algorithms", authors="Smith, J.", year=2023)
    assert format_citation(paper, "ieee", "arXiv") == 'Smith, J., "Quantum Algorithms," arXiv, 2023.'


def test_author_helpers():
    assert first_author(" Jane Doe , John Roe") == "Jane Doe"
    assert first_author(None) == "Unknown Author"
    assert last_name("Jane van Doe, John Roe") == "Doe"
    assert last_name("") == "Unknown"


def test_in_text_numeric_styles_use_position():
    assert in_text_citation(PAPER, 3, "ieee") == "[3]"
    assert in_text_citation(PAPER, 2, "chicago") == "[2]"


def test_in_text_author_year_styles():
    assert in_text_citation(PAPER, 1, "apa") == "(Vaswani, 2017)"
    assert in_text_citation(PAPER, 1, "mla") == "(Vaswani, 2017)"


def test_in_text_without_year_uses_current_year():
    paper = {"authors": "Grace Hopper"}
    assert in_text_citation(paper, 1, "apa") == f"(Hopper, {date.today().year})"


def test_batch_forms_keep_input_order():
    papers = [PAPER, {**PAPER, "id": "p2", "title": "Second"}]

    formatted = format_citations(papers, "IEEE")
    assert [c["id"] for c in formatted] == ["p1", "p2"]
    assert all(c["style"] == "ieee" for c in formatted)

    markers = in_text_citations(papers, "ieee")
    assert [(m["id"], m["inText"], m["number"]) for m in markers] == [
        ("p1", "[1]", 1),
        ("p2", "[2]", 2),
    ]


def test_validate_citation():
    assert validate_citation(PAPER, "ieee") == (True, None)
    assert validate_citation({"title": "T", "authors": "A"}, "mla") == (True, None)
    assert validate_citation({"title": "T", "authors": "A"}, "apa") == (
        False,
        "Missing required field: year",
    )
    assert validate_citation(PAPER, "vancouver") == (False, "Unknown citation style")


def test_validate_citation_accepts_papers_and_chicago():
    assert validate_citation(Paper(title="T", authors="A", year=2020), "ieee") == (True, None)
    assert validate_citation(Paper(title="T"), "chicago") == (False, "Missing required field: authors")
