"""Structured cache keys."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable

from context_builder.utils.hashing import sha256_text


@dataclass(frozen=True, slots=True)
class ChunkCacheKey:
    """Chunks of one document revision; a new ``last_modified`` is a new key."""

    document_id: str
    last_modified: datetime


@dataclass(frozen=True, slots=True)
class ContextCacheKey:
    """An assembled context for a set of documents and one query."""

    document_ids: tuple[str, ...]
    query_digest: str

    @classmethod
    def build(cls, document_ids: Iterable[str], query: str) -> "ContextCacheKey":
        return cls(document_ids=tuple(sorted(set(document_ids))), query_digest=sha256_text(query))


__all__ = ["ChunkCacheKey", "ContextCacheKey"]
