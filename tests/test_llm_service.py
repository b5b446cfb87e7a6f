import asyncio
import json

import httpx
import pytest

from papertrail.config import LLMSettings
from papertrail.services.llm_service import (
    GENERAL_CONTENT,
    SECTION_CONTENT,
    AssistantService,
    FallbackGenerator,
    LLMUnavailableError,
    LocalGenerator,
    OllamaGenerator,
    build_generator,
    build_prompt,
    paper_context,
)
from papertrail.models.paper import Paper

from conftest import FailingGenerator, RecordingGenerator


def _ollama(handler) -> OllamaGenerator:
    return OllamaGenerator(
        base_url="http://ollama.test/",
        model="llama3.2:3b",
        api_key="secret",
        transport=httpx.MockTransport(handler),
    )


def test_ollama_sends_non_streaming_request():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["auth"] = request.headers.get("Authorization")
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"response": "hello from the model"})

    text = asyncio.run(_ollama(handler).generate("Say hello"))

    assert text == "hello from the model"
    assert seen["url"] == "http://ollama.test/api/generate"
    assert seen["auth"] == "Bearer secret"
    assert seen["body"]["model"] == "llama3.2:3b"
    assert seen["body"]["stream"] is False
    assert seen["body"]["prompt"] == "Say hello"


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(500, text="boom"),
        httpx.Response(200, json={"response": ""}),
        httpx.Response(200, text="not json"),
    ],
)
def test_ollama_failures_raise_unavailable(response):
    generator = _ollama(lambda request: response)
    with pytest.raises(LLMUnavailableError):
        asyncio.run(generator.generate("x"))


def test_ollama_connection_error_raises_unavailable():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(LLMUnavailableError):
        asyncio.run(_ollama(handler).generate("x"))


def test_fallback_uses_local_answer_when_remote_fails(caplog):
    primary = FailingGenerator()
    generator = FallbackGenerator(primary, LocalGenerator())

    with caplog.at_level("WARNING"):
        text = asyncio.run(generator.generate("hello"))

    assert primary.calls == 1
    assert text == GENERAL_CONTENT
    assert "local fallback" in caplog.text


def test_fallback_prefers_remote_answer():
    generator = FallbackGenerator(RecordingGenerator("remote"), LocalGenerator())
    assert asyncio.run(generator.generate("hello")) == "remote"


def test_build_generator_respects_enabled_flag(settings):
    assert isinstance(build_generator(settings), LocalGenerator)

    settings.update(llm=LLMSettings(enabled=True))
    generator = build_generator(settings)
    assert isinstance(generator, FallbackGenerator)
    assert isinstance(generator.primary, OllamaGenerator)


def test_paper_context_lists_papers():
    papers = [Paper(title="Quantum Algorithms", authors="Smith, J.", year=2023, arxiv_id="2301.1")]
    context = paper_context(papers)

    assert 'Title: "Quantum Algorithms"' in context
    assert "Authors: Smith, J." in context
    assert "ArXiv ID: 2301.1" in context
    assert paper_context([]) == ""


def test_local_citations_from_prompt():
    papers = [Paper(title="Quantum Algorithms", authors="Smith, J.", year=2023)]
    prompt = build_prompt("Generate properly formatted IEEE citations for these papers.", papers)

    text = LocalGenerator().respond(prompt)

    assert "In-text Citations: [1]" in text
    assert '[1] Smith, "Quantum Algorithms," 2023.' in text


def test_local_section_content():
    prompt = build_prompt("Generate introduction content that incorporates insights.", [])
    assert LocalGenerator().respond(prompt) == SECTION_CONTENT["introduction"]


def test_local_summary_lists_titles():
    papers = [Paper(title="A Survey"), Paper(title="B Results")]
    text = LocalGenerator().respond(build_prompt("Provide a comprehensive summary.", papers))
    assert "- A Survey" in text
    assert "- B Results" in text


def test_assistant_message_saves_both_turns(db):
    paper_id = db.papers.add({"title": "Qubit routing", "topic": "quantum computing", "year": 2022})
    generator = RecordingGenerator("answer")
    assistant = AssistantService(generator, db.papers, db.chat)

    result = asyncio.run(assistant.message("any quantum ideas?", [paper_id, "missing"], "s1"))

    assert result["response"] == "answer"
    assert result["selectedPapers"] == 2
    assert [p["id"] for p in result["recommendedPapers"]] == [paper_id]
    assert 'Title: "Qubit routing"' in generator.prompts[0]
    assert [(m.role, m.message) for m in db.chat.history("s1")] == [
        ("user", "any quantum ideas?"),
        ("assistant", "answer"),
    ]


def test_assistant_message_without_session_saves_nothing(db):
    assistant = AssistantService(RecordingGenerator(), db.papers, db.chat)
    asyncio.run(assistant.message("hello"))
    assert db.chat.history("") == []


def test_suggestions(db):
    assistant = AssistantService(RecordingGenerator("tighten it"), db.papers, db.chat)

    generic = asyncio.run(assistant.suggestions("introduction"))
    assert [s["type"] for s in generic] == ["structure", "content"]

    with_papers = asyncio.run(assistant.suggestions("conclusion", ["1"], "text"))
    assert with_papers[0] == {"type": "ai_suggestion", "content": "tighten it", "confidence": 0.9}
    assert with_papers[1]["type"] == "general"
