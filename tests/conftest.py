"""Shared fixtures: isolated settings, a fresh store and an API client."""

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from papertrail.config import ArxivSettings, LLMSettings, Settings
from papertrail.database.repository import Database
from papertrail.server.app import create_app
from papertrail.services.llm_service import LLMUnavailableError


class RecordingGenerator:
    """Text generator that returns a fixed reply and remembers prompts."""

    def __init__(self, reply: str = "generated text"):
        self.reply = reply
        self.prompts: list[str] = []

    async def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        return self.reply


class FailingGenerator:
    """Text generator that is always unavailable."""

    def __init__(self):
        self.calls = 0

    async def generate(self, prompt: str) -> str:
        self.calls += 1
        raise LLMUnavailableError("connection refused")


class FakeArxiv:
    """Stands in for ArxivService without touching the network."""

    def __init__(self, papers=None, error=None):
        self.papers = papers or []
        self.error = error
        self.calls: list[tuple] = []

    def fetch_for_topics(self, topics, per_topic=20):
        self.calls.append(("topics", list(topics), per_topic))
        if self.error:
            raise self.error
        return [dict(p) for p in self.papers]

    def search(self, query, max_results=10):
        self.calls.append(("search", query, max_results))
        if self.error:
            raise self.error
        return [dict(p) for p in self.papers]


@pytest.fixture
def settings(tmp_path: Path):
    """Singleton settings pointed at a temporary directory."""
    Settings.reset()
    s = Settings(
        base_dir=tmp_path,
        metadata_dir=tmp_path / ".metadata",
        data_dir=tmp_path / "data",
        upload_dir=tmp_path / "uploads",
        export_dir=tmp_path / "exports",
        llm=LLMSettings(enabled=False),
        arxiv=ArxivSettings(delay=0.0),
    )
    yield s
    Settings.reset()


@pytest.fixture
def db(tmp_path: Path) -> Database:
    return Database(tmp_path / "data")


@pytest.fixture
def generator() -> RecordingGenerator:
    return RecordingGenerator()


@pytest.fixture
def fake_arxiv() -> FakeArxiv:
    return FakeArxiv(
        papers=[
            {
                "arxiv_id": "2301.00001v1",
                "title": "Variational Quantum Circuits",
                "authors": "Alice Smith, Bob Jones",
                "abstract": "We study qubit circuit depth.",
                "topic": "quantum computing",
                "venue": "arXiv",
                "year": 2023,
                "citation_count": 0,
                "keywords": ["qubit", "circuit"],
            }
        ]
    )


@pytest.fixture
def app(settings, generator, fake_arxiv):
    return create_app(settings, generator=generator, arxiv_service=fake_arxiv)


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app)
