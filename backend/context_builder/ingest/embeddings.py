"""Embedding gateways.

Every gateway honours the same contract: ``embed`` and ``embed_batch`` never
raise. A failed call yields an empty vector (or an empty batch) and callers
treat that as "embeddings unavailable".
"""

from __future__ import annotations

import hashlib
import logging
import math
import re
from abc import ABC, abstractmethod
from typing import Any, Sequence

from context_builder.core.config import Settings
from context_builder.core.metrics import EMBEDDING_FAILURES

logger = logging.getLogger(__name__)

_TOKEN_RE = re.compile(r"\w+")

Vector = list[float]


class EmbeddingGateway(ABC):
    """Text-to-vector capability with a never-raise contract."""

    @property
    @abstractmethod
    def dim(self) -> int:
        """Dimensionality of produced vectors."""

    @abstractmethod
    def _encode(self, texts: Sequence[str]) -> list[Vector]:
        """Backend call; may raise."""

    def embed(self, text: str) -> Vector:
        if not text or not text.strip():
            return []
        try:
            vectors = self._encode([text])
        except Exception as exc:
            logger.error("Embedding generation failed: %s", exc)
            EMBEDDING_FAILURES.labels(operation="embed").inc()
            return []
        if len(vectors) != 1:
            EMBEDDING_FAILURES.labels(operation="embed").inc()
            return []
        return list(vectors[0])

    def embed_batch(self, texts: Sequence[str]) -> list[Vector]:
        if not texts:
            return []
        try:
            vectors = self._encode(list(texts))
        except Exception as exc:
            logger.error("Batch embedding generation failed for %s texts: %s", len(texts), exc)
            EMBEDDING_FAILURES.labels(operation="embed_batch").inc()
            return []
        if len(vectors) != len(texts):
            logger.error("Embedding backend returned %s vectors for %s texts", len(vectors), len(texts))
            EMBEDDING_FAILURES.labels(operation="embed_batch").inc()
            return []
        return [list(vector) for vector in vectors]

    def cosine_similarity(self, a: Sequence[float], b: Sequence[float]) -> float:
        return cosine_similarity(a, b)


class HashedEmbeddingGateway(EmbeddingGateway):
    """Deterministic hashed bag-of-words embeddings; no model download needed."""

    def __init__(self, dim: int = 384) -> None:
        if dim <= 0:
            raise ValueError("dim must be positive")
        self._dim = dim

    @property
    def dim(self) -> int:
        return self._dim

    def _encode(self, texts: Sequence[str]) -> list[Vector]:
        vectors: list[Vector] = []
        for text in texts:
            vector = [0.0] * self._dim
            for token in _tokenize(text):
                vector[_hash_token(token, self._dim)] += 1.0
            _normalize(vector)
            vectors.append(vector)
        return vectors


class SentenceTransformerGateway(EmbeddingGateway):
    """Local sentence-transformers model, loaded once on construction."""

    def __init__(self, model_name: str, device: str | None = None) -> None:
        self.model_name = model_name
        self.device = device
        self._model: Any = None
        self._dim = 0
        self._load()

    @property
    def dim(self) -> int:
        return self._dim

    def _load(self) -> None:
        try:
            from sentence_transformers import SentenceTransformer
        except ImportError:
            logger.warning("sentence-transformers is not installed; embeddings disabled")
            return
        try:
            self._model = SentenceTransformer(self.model_name, device=self.device)
        except Exception as exc:  # pragma: no cover - requires network
            logger.warning("Failed to load embedding model '%s': %s", self.model_name, exc)
            self._model = None
            return
        self._dim = int(self._model.get_sentence_embedding_dimension() or 0)

    def _encode(self, texts: Sequence[str]) -> list[Vector]:
        if self._model is None:
            raise RuntimeError(f"Embedding model '{self.model_name}' is not loaded")
        encoded = self._model.encode(list(texts), convert_to_numpy=True, normalize_embeddings=True)
        return [row.tolist() for row in encoded]


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine of the angle between two vectors; 0.0 when undefined."""
    if not a or not b or len(a) != len(b):
        return 0.0
    dot = 0.0
    norm_a = 0.0
    norm_b = 0.0
    for x, y in zip(a, b):
        dot += x * y
        norm_a += x * x
        norm_b += y * y
    if norm_a == 0 or norm_b == 0:
        return 0.0
    similarity = dot / (math.sqrt(norm_a) * math.sqrt(norm_b))
    return max(-1.0, min(1.0, similarity))


def build_gateway(settings: Settings) -> EmbeddingGateway:
    """Instantiate the embedding backend named in settings."""
    if settings.embedding_backend == "sentence-transformers":
        return SentenceTransformerGateway(settings.embedding_model)
    return HashedEmbeddingGateway(dim=settings.embedding_dim)


def _tokenize(text: str) -> list[str]:
    return _TOKEN_RE.findall(text.lower())


def _hash_token(token: str, dim: int) -> int:
    digest = hashlib.blake2b(token.encode("utf-8"), digest_size=8).digest()
    value = int.from_bytes(digest, "big")
    return value % dim


def _normalize(vector: list[float]) -> None:
    norm = math.sqrt(sum(value * value for value in vector))
    if norm == 0:
        return
    inv = 1.0 / norm
    for idx, value in enumerate(vector):
        vector[idx] = value * inv


__all__ = [
    "EmbeddingGateway",
    "HashedEmbeddingGateway",
    "SentenceTransformerGateway",
    "Vector",
    "build_gateway",
    "cosine_similarity",
]
