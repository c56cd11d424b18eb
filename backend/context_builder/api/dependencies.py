"""Shared FastAPI dependencies."""

from __future__ import annotations

from functools import lru_cache

from context_builder.cache.store import ExpiringCache
from context_builder.core.config import Settings, get_settings
from context_builder.ingest.embeddings import EmbeddingGateway, build_gateway
from context_builder.retrieval import ContextAssembler

_STORE: ExpiringCache | None = None
_GATEWAY: EmbeddingGateway | None = None
_ASSEMBLER: ContextAssembler | None = None


@lru_cache(maxsize=1)
def get_app_settings() -> Settings:
    return get_settings()


def get_cache_store() -> ExpiringCache:
    global _STORE
    if _STORE is None:
        _STORE = ExpiringCache()
    return _STORE


def get_embedding_gateway() -> EmbeddingGateway:
    global _GATEWAY
    if _GATEWAY is None:
        _GATEWAY = build_gateway(get_app_settings())
    return _GATEWAY


def get_context_assembler() -> ContextAssembler:
    global _ASSEMBLER
    if _ASSEMBLER is None:
        _ASSEMBLER = ContextAssembler(
            embeddings=get_embedding_gateway(),
            store=get_cache_store(),
            settings=get_app_settings().context_settings(),
        )
    return _ASSEMBLER


__all__ = [
    "get_app_settings",
    "get_cache_store",
    "get_context_assembler",
    "get_embedding_gateway",
]
