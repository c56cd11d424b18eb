"""Semantic chunk ranking and token-budgeted selection."""

from __future__ import annotations

import math
from typing import Sequence

from context_builder.core.config import ContextSettings
from context_builder.ingest.embeddings import cosine_similarity
from context_builder.models.entities import Chunk, RankedChunk

CHARS_PER_TOKEN = 4


def estimate_tokens(text: str) -> int:
    """Approximate token count at four characters per token."""
    if not text or not text.strip():
        return 0
    return math.ceil(len(text) / CHARS_PER_TOKEN)


def rank_chunks(
    chunks: Sequence[Chunk],
    query_embedding: Sequence[float],
    threshold: float,
) -> list[RankedChunk]:
    """Score embedded chunks against the query, keep those at or above threshold.

    The result is ordered by score descending; equal scores keep input order.
    """
    if not query_embedding:
        return []
    ranked: list[RankedChunk] = []
    for chunk in chunks:
        if not chunk.has_embedding:
            continue
        score = cosine_similarity(query_embedding, chunk.embedding)
        if score >= threshold:
            ranked.append(RankedChunk(chunk=chunk, score=score))
    ranked.sort(key=lambda item: item.score, reverse=True)
    return ranked


def select_chunks(
    chunks: Sequence[Chunk],
    query_embedding: Sequence[float],
    settings: ContextSettings,
) -> list[Chunk]:
    """Pick the chunks to place in the context, best first.

    With the ``per_chunk`` policy each chunk's own estimate is compared to
    ``max_tokens`` and selection stops at the first chunk that is too large,
    even if smaller chunks follow. With ``cumulative`` selection stops once
    the running total would exceed ``max_tokens``.
    """
    ranked = rank_chunks(chunks, query_embedding, settings.relevance_threshold)
    selected: list[Chunk] = []
    total_tokens = 0
    for item in ranked:
        tokens = estimate_tokens(item.chunk.content)
        if settings.token_budget_policy == "cumulative":
            if total_tokens + tokens > settings.max_tokens:
                break
        elif tokens > settings.max_tokens:
            break
        selected.append(item.chunk)
        total_tokens += tokens
    return selected


__all__ = ["CHARS_PER_TOKEN", "estimate_tokens", "rank_chunks", "select_chunks"]
