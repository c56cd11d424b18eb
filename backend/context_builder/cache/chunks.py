"""Per-document chunk memoization."""

from __future__ import annotations

import logging

from context_builder.cache.keys import ChunkCacheKey
from context_builder.cache.store import ExpiringCache
from context_builder.core.config import ContextSettings
from context_builder.core.metrics import CACHE_LOOKUPS
from context_builder.ingest.chunker import segment_text
from context_builder.ingest.embeddings import EmbeddingGateway
from context_builder.models.entities import Chunk, Document

logger = logging.getLogger(__name__)


class ChunkCache:
    """Segment and embed documents once per revision."""

    def __init__(
        self,
        store: ExpiringCache,
        embeddings: EmbeddingGateway,
        settings: ContextSettings,
    ) -> None:
        self.store = store
        self.embeddings = embeddings
        self.settings = settings

    def get_or_create(self, document: Document) -> list[Chunk]:
        key = ChunkCacheKey(document_id=document.id, last_modified=document.last_modified)
        chunks, hit = self.store.get_or_create(
            key,
            lambda: self.create_chunks(document),
            ttl=self.settings.cache_ttl_seconds,
        )
        CACHE_LOOKUPS.labels(kind="chunks", result="hit" if hit else "miss").inc()
        if hit:
            logger.debug("Chunk cache hit for document %s", document.id)
        return list(chunks)

    def create_chunks(self, document: Document) -> list[Chunk]:
        """Segment ``document`` and embed every chunk in a single batch."""
        texts = [text.strip() for text in segment_text(document.content, self.settings.chunk_size)]
        if not texts:
            return []
        vectors = self.embeddings.embed_batch(texts)
        if len(vectors) != len(texts):
            logger.warning(
                "Embeddings unavailable for document %s; caching %s chunks without vectors",
                document.id,
                len(texts),
            )
            vectors = [[] for _ in texts]
        chunks = [
            Chunk(document_id=document.id, index=index, content=text, embedding=tuple(vector))
            for index, (text, vector) in enumerate(zip(texts, vectors))
        ]
        logger.debug("Created %s chunks for document %s", len(chunks), document.id)
        return chunks


__all__ = ["ChunkCache"]
