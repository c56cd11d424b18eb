"""Tests for context assembly."""

from __future__ import annotations

from typing import Sequence

import pytest

from conftest import CountingHashedGateway, FakeClock, KeyedEmbeddingGateway
from context_builder.cache import ChunkCache, ContextCacheKey, ExpiringCache
from context_builder.core.config import ContextSettings
from context_builder.models.entities import Chunk, Document
from context_builder.retrieval import ContextAssembler, KeywordFallback
from context_builder.retrieval.formatting import NO_DOCUMENTS_MESSAGE

QUERY = "vacation policy"

VECTORS = {
    QUERY: [1.0, 0.0, 0.0],
    "Vacation days accrue monthly.": [1.0, 0.0, 0.0],
    "Vacation requests need manager approval.": [0.9, 0.1, 0.0],
    "Parking spaces are on level two of the building.": [0.0, 1.0, 0.0],
}


class ExplodingChunkCache(ChunkCache):
    def get_or_create(self, document: Document) -> list[Chunk]:
        raise RuntimeError("chunk store offline")


class ExplodingFallback(KeywordFallback):
    def build_context(self, documents: Sequence[Document], query: str) -> str:
        raise RuntimeError("fallback broken")


@pytest.fixture
def documents(make_document) -> list[Document]:
    return [
        make_document("a", "Vacation days accrue monthly."),
        make_document("b", "Vacation requests need manager approval."),
        make_document("c", "Parking spaces are on level two of the building."),
    ]


@pytest.fixture
def store(clock: FakeClock) -> ExpiringCache:
    return ExpiringCache(clock=clock)


def _assembler(store: ExpiringCache, gateway, **overrides) -> ContextAssembler:
    settings = ContextSettings(**overrides)
    return ContextAssembler(embeddings=gateway, store=store, settings=settings)


def test_semantic_context_lists_only_matching_documents(store, documents) -> None:
    assembler = _assembler(store, KeyedEmbeddingGateway(VECTORS))

    result = assembler.build(documents, QUERY)

    assert result.tier == "semantic"
    assert result.cached is True
    assert result.text == (
        "=== a.docx ===\n"
        "URL: https://intranet.example.com/docs/a\n"
        "Last modified: 15/03/2024\n"
        "Author: Ana Torres\n"
        "Relevant content:\n"
        "Vacation days accrue monthly.\n"
        "\n"
        "\n"
        "=== b.docx ===\n"
        "URL: https://intranet.example.com/docs/b\n"
        "Last modified: 15/03/2024\n"
        "Author: Ana Torres\n"
        "Relevant content:\n"
        "Vacation requests need manager approval.\n"
        "\n"
        "\n"
    )
    assert "c.docx" not in result.text


def test_chunks_of_one_document_are_in_index_order(store, make_document) -> None:
    vectors = {
        QUERY: [1.0, 0.0],
        "First vacation paragraph.": [0.8, 0.6],
        "Second vacation paragraph.": [1.0, 0.0],
    }
    document = make_document("a", "First vacation paragraph.\n\nSecond vacation paragraph.")
    assembler = _assembler(store, KeyedEmbeddingGateway(vectors, dim=2), chunk_size=10)

    text = assembler.get_optimized_context([document], QUERY)

    assert text.index("First vacation paragraph.") < text.index("Second vacation paragraph.")
    assert "First vacation paragraph.\n\nSecond vacation paragraph.\n\n\n" in text


def test_second_call_is_served_from_cache(store, documents) -> None:
    gateway = KeyedEmbeddingGateway(VECTORS)
    assembler = _assembler(store, gateway)

    first = assembler.get_optimized_context(documents, QUERY)
    calls_after_first = len(gateway.calls)
    second = assembler.build(list(reversed(documents)), QUERY)

    assert second.text == first
    assert second.tier == "cache"
    assert len(gateway.calls) == calls_after_first


def test_query_embedding_failure_uses_cached_keyword_context(store, documents) -> None:
    gateway = KeyedEmbeddingGateway({})
    assembler = _assembler(store, gateway)
    query = "vacation approval"

    result = assembler.build(documents, query)

    expected = KeywordFallback(assembler.settings).build_context(documents, query)
    assert result.tier == "keyword"
    assert result.text == expected
    assert store.get(ContextCacheKey.build([doc.id for doc in documents], query)) == expected
    assert gateway.calls == [[query]]


def test_chunk_embedding_failure_uses_cached_keyword_context(store, documents) -> None:
    gateway = KeyedEmbeddingGateway({QUERY: [1.0, 0.0, 0.0]})
    assembler = _assembler(store, gateway)

    result = assembler.build(documents, QUERY)

    expected = KeywordFallback(assembler.settings).build_context(documents, QUERY)
    assert result.tier == "keyword"
    assert result.cached is True
    assert result.text == expected
    assert store.get(ContextCacheKey.build([doc.id for doc in documents], QUERY)) == expected
    assert gateway.calls[0] == [QUERY]
    assert len(gateway.calls) == 1 + len(documents)


def test_oversized_top_chunk_triggers_keyword_fallback(store, make_document) -> None:
    long_text = "Vacation policy details. " + "x" * 200
    vectors = {
        QUERY: [1.0, 0.0],
        long_text.strip(): [1.0, 0.0],
        "Vacation is short.": [0.95, 0.05],
    }
    documents = [make_document("a", long_text), make_document("b", "Vacation is short.")]
    assembler = _assembler(store, KeyedEmbeddingGateway(vectors, dim=2), max_tokens=10)

    result = assembler.build(documents, QUERY)

    assert result.tier == "keyword"
    assert result.text == KeywordFallback(assembler.settings).build_context(documents, QUERY)


def test_no_chunk_above_threshold_falls_back(store, documents) -> None:
    vectors = dict(VECTORS)
    vectors[QUERY] = [0.0, 0.0, 1.0]
    assembler = _assembler(store, KeyedEmbeddingGateway(vectors))

    result = assembler.build(documents, QUERY)

    assert result.tier == "keyword"
    assert result.cached is True


def test_unexpected_failure_is_not_cached(store, documents) -> None:
    gateway = KeyedEmbeddingGateway(VECTORS)
    settings = ContextSettings()
    assembler = ContextAssembler(
        embeddings=gateway,
        store=store,
        settings=settings,
        chunk_cache=ExplodingChunkCache(store, gateway, settings),
    )

    result = assembler.build(documents, QUERY)

    assert result.tier == "keyword"
    assert result.cached is False
    assert result.text == KeywordFallback(settings).build_context(documents, QUERY)
    assert store.get(ContextCacheKey.build([doc.id for doc in documents], QUERY)) is None


def test_failing_fallback_returns_placeholder(store, documents) -> None:
    settings = ContextSettings()
    assembler = ContextAssembler(
        embeddings=KeyedEmbeddingGateway({}),
        store=store,
        settings=settings,
        fallback=ExplodingFallback(settings),
    )

    result = assembler.build(documents, QUERY)

    assert result.tier == "placeholder"
    assert result.text == NO_DOCUMENTS_MESSAGE
    assert len(store) == 0


def test_only_max_documents_are_chunked(store, documents) -> None:
    gateway = KeyedEmbeddingGateway(VECTORS)
    assembler = _assembler(store, gateway, max_documents=1)

    result = assembler.build(documents, QUERY)

    assert result.tier == "semantic"
    assert "a.docx" in result.text
    assert "b.docx" not in result.text
    assert gateway.calls == [[QUERY], ["Vacation days accrue monthly."]]


def test_cached_context_expires(clock: FakeClock, store, documents) -> None:
    gateway = KeyedEmbeddingGateway(VECTORS)
    assembler = _assembler(store, gateway, cache_expiration_minutes=1)

    assembler.build(documents, QUERY)
    clock.advance(61)
    result = assembler.build(documents, QUERY)

    assert result.tier == "semantic"


def test_clear_cache_forces_rebuild(store, documents) -> None:
    gateway = CountingHashedGateway()
    assembler = _assembler(store, gateway, relevance_threshold=0.5)
    docs = [documents[0]]

    first = assembler.build(docs, "Vacation days accrue monthly.")
    assert first.tier == "semantic"
    assert assembler.clear_cache() == 2
    second = assembler.build(docs, "Vacation days accrue monthly.")

    assert second.tier == "semantic"
    assert second.text == first.text
    assert len(gateway.calls) == 4


def test_empty_document_list(store) -> None:
    assembler = _assembler(store, KeyedEmbeddingGateway(VECTORS))
    assert assembler.get_optimized_context([], QUERY) == NO_DOCUMENTS_MESSAGE
