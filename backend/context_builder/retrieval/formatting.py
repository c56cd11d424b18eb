"""Rendering of context blocks handed to the language model."""

from __future__ import annotations

from typing import Iterable, Sequence

from context_builder.models.entities import Chunk, Document
from context_builder.utils.time import format_display_date

NO_DOCUMENTS_MESSAGE = "No relevant documents were found."
NO_FRAGMENTS_MESSAGE = "No relevant document fragments were found."
NO_CONTENT_MESSAGE = "No content available."


def document_header(document: Document) -> list[str]:
    return [
        f"=== {document.name} ===",
        f"URL: {document.url}",
        f"Last modified: {format_display_date(document.last_modified)}",
        f"Author: {document.author}",
    ]


def render_chunk_context(chunks: Sequence[Chunk], documents: Iterable[Document]) -> str:
    """Group chunks under their document headers.

    Documents appear in the order of their first chunk in ``chunks``; a
    document's chunks are listed by ascending index. Chunks whose document
    is unknown are skipped. When ids repeat, the first document with that id
    supplies the header.
    """
    if not chunks:
        return NO_FRAGMENTS_MESSAGE

    by_id: dict[str, Document] = {}
    for document in documents:
        by_id.setdefault(document.id, document)
    groups: dict[str, list[Chunk]] = {}
    for chunk in chunks:
        groups.setdefault(chunk.document_id, []).append(chunk)

    lines: list[str] = []
    for document_id, group in groups.items():
        document = by_id.get(document_id)
        if document is None:
            continue
        lines.extend(document_header(document))
        lines.append("Relevant content:")
        for chunk in sorted(group, key=lambda item: item.index):
            lines.append(chunk.content)
            lines.append("")
        lines.append("")
    if not lines:
        return NO_FRAGMENTS_MESSAGE
    return "\n".join(lines) + "\n"


def render_document_block(document: Document, content: str) -> str:
    lines = document_header(document)
    lines.append("Content:")
    lines.append(content)
    lines.append("")
    return "\n".join(lines) + "\n"


__all__ = [
    "NO_CONTENT_MESSAGE",
    "NO_DOCUMENTS_MESSAGE",
    "NO_FRAGMENTS_MESSAGE",
    "document_header",
    "render_chunk_context",
    "render_document_block",
]
