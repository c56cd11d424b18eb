"""Pydantic DTOs exposed via API."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from context_builder.models.entities import Document


class DocumentIn(BaseModel):
    id: str
    name: str
    url: str = ""
    content: str = ""
    last_modified: datetime
    author: str = ""

    def to_entity(self) -> Document:
        return Document(
            id=self.id,
            name=self.name,
            url=self.url,
            content=self.content,
            last_modified=self.last_modified,
            author=self.author,
        )


class ContextRequest(BaseModel):
    query: str
    documents: list[DocumentIn] = Field(default_factory=list)


class ContextResponse(BaseModel):
    context: str
    tier: Literal["cache", "semantic", "keyword", "placeholder"]
    cached: bool


class CompactResponse(BaseModel):
    removed: int


__all__ = [
    "DocumentIn",
    "ContextRequest",
    "ContextResponse",
    "CompactResponse",
]
