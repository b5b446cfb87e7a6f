"""LLM text generation with a deterministic local fallback.

Generation is a strategy (:class:`TextGenerator`).  The remote strategy
talks to an Ollama server; when it is unreachable, times out or answers
with nothing, :class:`FallbackGenerator` logs the failure and answers from
:class:`LocalGenerator`, which never fails.  There is no retry.
"""

import logging
import re
from typing import Any, Optional, Protocol

import httpx

from papertrail.config import Settings
from papertrail.database.repository import ChatRepository, PaperRepository
from papertrail.models.paper import Paper
from papertrail.services.ranking_service import RankingService

logger = logging.getLogger(__name__)

ASSISTANT_PREAMBLE = "You are a helpful research assistant for academic paper writing."
# Recommendations attached to a chat response
CHAT_RECOMMENDATIONS = 5


class LLMUnavailableError(RuntimeError):
    """The remote model could not produce a response."""


class TextGenerator(Protocol):
    async def generate(self, prompt: str) -> str: ...


# ---------------------------------------------------------------------------
# Remote generator
# ---------------------------------------------------------------------------
class OllamaGenerator:
    """Ollama ``/api/generate`` client (non-streaming)."""

    def __init__(
        self,
        base_url: str,
        model: str,
        timeout: float = 30.0,
        api_key: str = "",
        temperature: float = 0.7,
        num_ctx: int = 4096,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize the client.

        Args:
            base_url: Ollama server root, e.g. ``http://localhost:11434``
            model: Model tag to generate with
            timeout: Whole-request timeout in seconds
            api_key: Sent as a bearer token when set
            temperature: Sampling temperature
            num_ctx: Context window size
            transport: Optional httpx transport (tests use a mock)
        """
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.timeout = timeout
        self.options = {"temperature": temperature, "num_ctx": num_ctx}
        self._headers = {"Authorization": f"Bearer {api_key}"} if api_key else {}
        self._transport = transport

    async def generate(self, prompt: str) -> str:
        """Send *prompt* and return the model's text.

        Raises:
            LLMUnavailableError: On transport errors, non-2xx status or an
                empty response
        """
        payload = {
            "model": self.model,
            "prompt": prompt,
            "stream": False,
            "options": self.options,
        }
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                headers=self._headers,
                transport=self._transport,
            ) as client:
                response = await client.post("/api/generate", json=payload)
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPStatusError as e:
            raise LLMUnavailableError(f"Ollama returned {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise LLMUnavailableError(f"Ollama request failed: {e}") from e
        except ValueError as e:
            raise LLMUnavailableError("Ollama returned invalid JSON") from e

        text = data.get("response") if isinstance(data, dict) else None
        if not text:
            raise LLMUnavailableError(
                f"No response from Ollama model '{self.model}'. Check if the model is loaded."
            )
        return text


# ---------------------------------------------------------------------------
# Local generator
# ---------------------------------------------------------------------------
_CONTEXT_HEADER = "Selected Research Papers:"
_TITLE_RE = re.compile(r'Title: "(.*?)"')
_AUTHORS_RE = re.compile(r"Authors: ([^\n]*)")
_YEAR_RE = re.compile(r"Year: (\d{4})")

SECTION_CONTENT = {
    "introduction": (
        "Based on the selected research papers, here is generated content for the "
        "introduction section:\n\nRecent developments in this research area have shown "
        "significant promise. The selected papers demonstrate innovative approaches to "
        "addressing key challenges in the field. This work builds upon established "
        "methodologies while introducing novel techniques that advance our understanding.\n\n"
        "The primary contributions include comprehensive analysis of existing approaches, "
        "identification of research gaps, and presentation of new methodologies that show "
        "improved performance over baseline methods."
    ),
    "methodology": (
        "Based on the selected research papers, here is generated methodology content:\n\n"
        "Our approach follows established research protocols while incorporating insights "
        "from recent studies. The methodology encompasses data collection procedures, "
        "experimental design, and analytical frameworks validated in prior work.\n\n"
        "The research design integrates quantitative and qualitative methods to ensure "
        "comprehensive analysis. Statistical validation follows standard practices "
        "documented in the literature."
    ),
}
GENERIC_SECTION_CONTENT = (
    "Based on the selected research papers, here is generated content for this section:\n\n"
    "The research demonstrates significant advances in the field through systematic "
    "investigation and rigorous methodology. Key findings indicate substantial improvements "
    "over existing approaches, with implications for both theoretical understanding and "
    "practical applications.\n\nThe work contributes to the broader research landscape by "
    "addressing identified gaps and providing validated solutions."
)
SUMMARY_CONTENT = (
    "Summary of the selected research papers:\n\n{titles}\n\nTogether these papers "
    "cover the methods, results and open questions of the topic. Review each abstract "
    "for the specific contributions before citing them."
)
GENERAL_CONTENT = (
    "I've processed your request with the selected research papers. Based on the content "
    "provided, I can assist with generating citations, populating sections, or summarizing "
    "key findings. The selected papers provide valuable insights that can be incorporated "
    "into your academic work."
)


class LocalGenerator:
    """Deterministic canned responses chosen from the prompt's content type."""

    def respond(self, prompt: str) -> str:
        # The request itself, without the selected-papers block
        request = prompt.split(_CONTEXT_HEADER)[0]
        lower = request.lower()
        titles = _TITLE_RE.findall(prompt)

        if titles and (
            "citation" in lower
            or ("formatted" in lower and ("ieee" in lower or "references" in lower))
        ):
            return self._citations(prompt, titles)

        if "summar" in lower and titles:
            listing = "\n".join(f"- {t}" for t in titles)
            return SUMMARY_CONTENT.format(titles=listing)

        if "generate" in lower and ("content" in lower or "incorporates" in lower):
            for section, text in SECTION_CONTENT.items():
                if section in request:
                    return text
            return GENERIC_SECTION_CONTENT

        return GENERAL_CONTENT

    async def generate(self, prompt: str) -> str:
        return self.respond(prompt)

    @staticmethod
    def _citations(prompt: str, titles: list[str]) -> str:
        authors = _AUTHORS_RE.findall(prompt)
        years = _YEAR_RE.findall(prompt)
        references = []
        for index, title in enumerate(titles):
            if index < len(authors) and index < len(years):
                first = authors[index].split(",")[0].strip()
                references.append(f'[{index + 1}] {first}, "{title}," {years[index]}.')
            else:
                references.append(f'[{index + 1}] "{title}"')
        markers = ", ".join(f"[{i + 1}]" for i in range(len(references)))
        return (
            "Here are the IEEE-style citations for the selected papers:\n\n"
            f"In-text Citations: {markers}\n\nFull References:\n" + "\n".join(references)
        )


class FallbackGenerator:
    """Try *primary* once; on :class:`LLMUnavailableError` use *fallback*."""

    def __init__(self, primary: TextGenerator, fallback: TextGenerator):
        self.primary = primary
        self.fallback = fallback

    async def generate(self, prompt: str) -> str:
        try:
            return await self.primary.generate(prompt)
        except LLMUnavailableError as e:
            logger.warning("LLM unavailable, using local fallback: %s", e)
            return await self.fallback.generate(prompt)


def build_generator(settings: Settings) -> TextGenerator:
    """Generator for *settings*: Ollama with local fallback, or local only."""
    llm = settings.llm
    if not llm.enabled:
        return LocalGenerator()
    remote = OllamaGenerator(
        base_url=llm.base_url,
        model=llm.model,
        timeout=llm.timeout,
        api_key=llm.api_key,
        temperature=llm.temperature,
        num_ctx=llm.num_ctx,
    )
    return FallbackGenerator(remote, LocalGenerator())


# ---------------------------------------------------------------------------
# Assistant
# ---------------------------------------------------------------------------
SUMMARY_PROMPTS = {
    "methodology": "Summarize the methodologies used in these research papers.",
    "findings": "Summarize the key findings and results from these research papers.",
    "comparison": "Compare and contrast the approaches and findings of these research papers.",
}
DEFAULT_SUMMARY_PROMPT = "Provide a comprehensive summary of these research papers."

GENERIC_SUGGESTIONS: dict[str, list[dict[str, Any]]] = {
    "abstract": [
        {"type": "structure", "content": "Consider adding quantitative results", "confidence": 0.7},
        {"type": "content", "content": "Include key methodology highlights", "confidence": 0.8},
    ],
    "introduction": [
        {"type": "structure", "content": "Add literature review subsection", "confidence": 0.8},
        {"type": "content", "content": "Clarify research objectives", "confidence": 0.9},
    ],
    "methodology": [
        {"type": "structure", "content": "Include experimental setup details", "confidence": 0.9},
        {"type": "content", "content": "Add validation procedures", "confidence": 0.8},
    ],
}
FALLBACK_SUGGESTION = {"type": "general", "content": "Consider expanding this section", "confidence": 0.6}


def paper_context(papers: list[Paper]) -> str:
    """Prompt block describing the selected papers (empty for none)."""
    if not papers:
        return ""
    lines = ["", "", _CONTEXT_HEADER]
    for index, paper in enumerate(papers, start=1):
        lines.append("")
        lines.append(f'{index}. Title: "{paper.title}"')
        lines.append(f"   Authors: {paper.authors}")
        lines.append(f"   Year: {paper.year}")
        lines.append(f"   Venue: {paper.display_venue}")
        if paper.abstract:
            lines.append(f"   Abstract: {paper.abstract}")
        if paper.arxiv_id:
            lines.append(f"   ArXiv ID: {paper.arxiv_id}")
    lines.append("")
    lines.append("Please use these papers as the primary source for generating the requested content.")
    return "\n".join(lines) + "\n"


def build_prompt(prompt: str, papers: list[Paper]) -> str:
    return f"{ASSISTANT_PREAMBLE} {prompt}{paper_context(papers)}"


class AssistantService:
    """Writing-assistant operations over the stored papers."""

    def __init__(
        self,
        generator: TextGenerator,
        papers: PaperRepository,
        chat: ChatRepository,
        ranking: Optional[RankingService] = None,
    ):
        self.generator = generator
        self.papers = papers
        self.chat = chat
        self.ranking = ranking or RankingService()

    def resolve(self, paper_ids: Optional[list[Any]]) -> list[Paper]:
        """Stored papers for *paper_ids*; unknown ids are skipped."""
        papers = (self.papers.get(pid) for pid in paper_ids or [])
        return [p for p in papers if p is not None]

    async def _generate(self, prompt: str, papers: list[Paper]) -> str:
        return await self.generator.generate(build_prompt(prompt, papers))

    async def message(
        self,
        message: str,
        paper_ids: Optional[list[Any]] = None,
        session_id: Optional[str] = None,
    ) -> dict[str, Any]:
        """Answer a chat message with the selected papers as context.

        Both turns are saved when *session_id* is given.

        Returns:
            Dict with ``response``, ``sources``, ``selectedPapers`` (count)
            and ``recommendedPapers`` (up to 5 paper dicts)
        """
        recommended = self.ranking.recommend(self.papers.all(), message)
        response = await self._generate(message, self.resolve(paper_ids))

        if session_id:
            self.chat.save_message(session_id, "user", message)
            self.chat.save_message(session_id, "assistant", response)

        return {
            "response": response,
            "sources": [],
            "selectedPapers": len(paper_ids or []),
            "recommendedPapers": [p.to_dict() for p in recommended[:CHAT_RECOMMENDATIONS]],
        }

    async def populate(
        self, section: str, paper_ids: Optional[list[Any]] = None, current_content: Optional[str] = None
    ) -> str:
        """Draft content for a paper *section*."""
        prompt = (
            f"Generate {section} content that incorporates insights from the selected "
            f"research papers. Current content: {current_content or 'None'}"
        )
        return await self._generate(prompt, self.resolve(paper_ids))

    async def cite(self, paper_ids: list[Any], style: str = "ieee") -> str:
        """Ask the model for formatted citations of the papers."""
        prompt = (
            f"Generate properly formatted {style.upper()} citations for these research "
            "papers. Include both in-text citations and full references."
        )
        return await self._generate(prompt, self.resolve(paper_ids))

    async def summarize(self, paper_ids: list[Any], summary_type: str = "general") -> str:
        """Summary of the papers (general, methodology, findings or comparison)."""
        prompt = SUMMARY_PROMPTS.get(summary_type, DEFAULT_SUMMARY_PROMPT)
        return await self._generate(prompt, self.resolve(paper_ids))

    async def suggestions(
        self,
        section: Optional[str],
        paper_ids: Optional[list[Any]] = None,
        current_content: Optional[str] = None,
    ) -> list[dict[str, Any]]:
        """AI suggestion (when papers are selected) plus generic section tips."""
        suggestions: list[dict[str, Any]] = []
        if paper_ids:
            prompt = (
                f'Based on the current {section} section content: "{current_content}", '
                "suggest improvements, additional content, or related research from the "
                "selected papers."
            )
            text = await self._generate(prompt, self.resolve(paper_ids))
            suggestions.append({"type": "ai_suggestion", "content": text, "confidence": 0.9})
        suggestions.extend(dict(s) for s in GENERIC_SUGGESTIONS.get(section or "", [FALLBACK_SUGGESTION]))
        return suggestions
