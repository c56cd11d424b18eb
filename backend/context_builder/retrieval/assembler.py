"""Context assembly orchestration.

The assembler degrades through three tiers and never raises to its caller:

1. semantic: chunk embeddings ranked against the query embedding;
2. keyword: sentence scoring by keyword overlap on the raw documents;
3. placeholder: a fixed message when even the keyword tier fails.

Results of tiers 1 and 2 are cached. A result produced after an unexpected
error is returned but not cached, so a transient fault does not stick for the
whole expiration window.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Literal, Sequence

from context_builder.cache.chunks import ChunkCache
from context_builder.cache.keys import ContextCacheKey
from context_builder.cache.store import ExpiringCache
from context_builder.core.config import ContextSettings
from context_builder.core.logging import get_logger
from context_builder.core.metrics import CACHE_LOOKUPS, CONTEXT_BUILD_SECONDS, CONTEXT_REQUESTS
from context_builder.ingest.embeddings import EmbeddingGateway
from context_builder.models.entities import Chunk, Document
from context_builder.retrieval.formatting import NO_DOCUMENTS_MESSAGE, render_chunk_context
from context_builder.retrieval.keywords import KeywordFallback
from context_builder.retrieval.ranker import select_chunks

logger = get_logger(__name__)

OutcomeStatus = Literal["ok", "needs_fallback", "failed"]
Tier = Literal["cache", "semantic", "keyword", "placeholder"]


@dataclass(frozen=True, slots=True)
class ContextOutcome:
    status: OutcomeStatus
    context: str | None = None
    reason: str | None = None

    @classmethod
    def ok(cls, context: str) -> "ContextOutcome":
        return cls(status="ok", context=context)

    @classmethod
    def needs_fallback(cls, reason: str) -> "ContextOutcome":
        return cls(status="needs_fallback", reason=reason)

    @classmethod
    def failed(cls, reason: str) -> "ContextOutcome":
        return cls(status="failed", reason=reason)


@dataclass(frozen=True, slots=True)
class ContextResult:
    text: str
    tier: Tier
    cached: bool


class ContextAssembler:
    """Build the document context for one query."""

    def __init__(
        self,
        embeddings: EmbeddingGateway,
        store: ExpiringCache,
        settings: ContextSettings,
        chunk_cache: ChunkCache | None = None,
        fallback: KeywordFallback | None = None,
    ) -> None:
        self.embeddings = embeddings
        self.store = store
        self.settings = settings
        self.chunk_cache = chunk_cache or ChunkCache(store, embeddings, settings)
        self.fallback = fallback or KeywordFallback(settings)

    def get_optimized_context(self, documents: Sequence[Document], query: str) -> str:
        return self.build(documents, query).text

    def build(self, documents: Sequence[Document], query: str) -> ContextResult:
        start_time = time.perf_counter()
        documents = list(documents)
        key = ContextCacheKey.build((document.id for document in documents), query)

        cached = self.store.get(key)
        if cached is not None:
            CACHE_LOOKUPS.labels(kind="context", result="hit").inc()
            logger.debug("Context cache hit for %s documents", len(documents))
            return self._finish(ContextResult(text=cached, tier="cache", cached=True), start_time)
        CACHE_LOOKUPS.labels(kind="context", result="miss").inc()

        outcome = self._semantic_context(documents, query)
        if outcome.status == "ok" and outcome.context is not None:
            self.store.set(key, outcome.context, ttl=self.settings.cache_ttl_seconds)
            return self._finish(ContextResult(text=outcome.context, tier="semantic", cached=True), start_time)

        if outcome.status == "needs_fallback":
            logger.warning("Using keyword fallback: %s", outcome.reason)
        else:
            logger.error("Semantic context failed, using keyword fallback: %s", outcome.reason)

        fallback = self._keyword_context(documents, query)
        if fallback.status != "ok" or fallback.context is None:
            return self._finish(ContextResult(text=NO_DOCUMENTS_MESSAGE, tier="placeholder", cached=False), start_time)

        should_cache = outcome.status == "needs_fallback"
        if should_cache:
            self.store.set(key, fallback.context, ttl=self.settings.cache_ttl_seconds)
        return self._finish(ContextResult(text=fallback.context, tier="keyword", cached=should_cache), start_time)

    def clear_cache(self) -> int:
        """Compact the whole store; returns the number of removed entries."""
        return self.store.compact(1.0)

    # Internal helpers -------------------------------------------------

    def _semantic_context(self, documents: list[Document], query: str) -> ContextOutcome:
        try:
            query_embedding = self.embeddings.embed(query)
            if not query_embedding:
                return ContextOutcome.needs_fallback("query embedding unavailable")

            pool: list[Chunk] = []
            for document in documents[: self.settings.max_documents]:
                pool.extend(self.chunk_cache.get_or_create(document))

            selected = select_chunks(pool, query_embedding, self.settings)
            if not selected:
                return ContextOutcome.needs_fallback(f"no relevant chunks among {len(pool)} candidates")
            logger.debug("Selected %s of %s chunks", len(selected), len(pool))
            return ContextOutcome.ok(render_chunk_context(selected, documents))
        except Exception as exc:
            logger.exception("Failed to build semantic context: %s", exc)
            return ContextOutcome.failed(str(exc))

    def _keyword_context(self, documents: list[Document], query: str) -> ContextOutcome:
        try:
            return ContextOutcome.ok(self.fallback.build_context(documents, query))
        except Exception as exc:
            logger.exception("Keyword fallback failed: %s", exc)
            return ContextOutcome.failed(str(exc))

    def _finish(self, result: ContextResult, start_time: float) -> ContextResult:
        CONTEXT_REQUESTS.labels(tier=result.tier).inc()
        CONTEXT_BUILD_SECONDS.observe(time.perf_counter() - start_time)
        logger.info(
            "Context built",
            extra={"ctx_tier": result.tier, "ctx_cached": result.cached, "ctx_chars": len(result.text)},
        )
        return result


__all__ = ["ContextAssembler", "ContextOutcome", "ContextResult"]
