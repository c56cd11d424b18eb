"""Test fixtures for Context Builder."""

from __future__ import annotations

import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Sequence

import pytest

BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(BACKEND_ROOT))

from context_builder.ingest.embeddings import EmbeddingGateway, HashedEmbeddingGateway  # noqa: E402
from context_builder.models.entities import Document  # noqa: E402


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class KeyedEmbeddingGateway(EmbeddingGateway):
    """Returns fixed vectors looked up by exact text; unknown text fails."""

    def __init__(self, vectors: dict[str, list[float]], dim: int = 3) -> None:
        self.vectors = vectors
        self._dim = dim
        self.calls: list[list[str]] = []

    @property
    def dim(self) -> int:
        return self._dim

    def _encode(self, texts: Sequence[str]) -> list[list[float]]:
        self.calls.append(list(texts))
        return [self.vectors[text] for text in texts]


class CountingHashedGateway(HashedEmbeddingGateway):
    def __init__(self, dim: int = 64) -> None:
        super().__init__(dim=dim)
        self.calls: list[list[str]] = []

    def _encode(self, texts: Sequence[str]) -> list[list[float]]:
        self.calls.append(list(texts))
        return super()._encode(texts)


@pytest.fixture(autouse=True)
def reset_state(monkeypatch: pytest.MonkeyPatch) -> None:
    """Reset global singletons and environment between tests."""
    monkeypatch.delenv("CTXB_CONFIG", raising=False)

    from context_builder.api import dependencies as deps
    from context_builder.core.config import get_settings

    def _reset() -> None:
        get_settings.cache_clear()
        deps.get_app_settings.cache_clear()
        deps._STORE = None
        deps._GATEWAY = None
        deps._ASSEMBLER = None

    _reset()
    yield
    _reset()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def make_document():
    def _make(
        doc_id: str,
        content: str,
        name: str | None = None,
        last_modified: datetime | None = None,
    ) -> Document:
        return Document(
            id=doc_id,
            name=name or f"{doc_id}.docx",
            url=f"https://intranet.example.com/docs/{doc_id}",
            content=content,
            last_modified=last_modified or datetime(2024, 3, 15, tzinfo=timezone.utc),
            author="Ana Torres",
        )

    return _make


@pytest.fixture(scope="session")
def sample_text() -> str:
    return "Title\n\nParagraph one.\n\nParagraph two is here."
