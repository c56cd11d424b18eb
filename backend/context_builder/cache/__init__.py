"""Expiring caches for chunks and assembled contexts."""

from .chunks import ChunkCache
from .keys import ChunkCacheKey, ContextCacheKey
from .store import ExpiringCache

__all__ = [
    "ChunkCache",
    "ChunkCacheKey",
    "ContextCacheKey",
    "ExpiringCache",
]
