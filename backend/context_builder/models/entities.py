"""Internal dataclasses shared by the context pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from context_builder.utils.ids import new_id
from context_builder.utils.time import utc_now


@dataclass(frozen=True, slots=True)
class Document:
    """A caller-owned document; the pipeline only reads it."""

    id: str
    name: str
    url: str
    content: str
    last_modified: datetime
    author: str = ""


@dataclass(frozen=True, slots=True)
class Chunk:
    document_id: str
    index: int
    content: str
    embedding: tuple[float, ...] = ()
    id: str = field(default_factory=lambda: new_id("chk"))
    created_at: datetime = field(default_factory=utc_now)

    @property
    def has_embedding(self) -> bool:
        return len(self.embedding) > 0


@dataclass(frozen=True, slots=True)
class RankedChunk:
    chunk: Chunk
    score: float


__all__ = ["Document", "Chunk", "RankedChunk"]
