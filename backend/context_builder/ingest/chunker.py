"""Paragraph-bounded chunking."""

from __future__ import annotations

import re
from typing import Iterator

# Two or more line breaks, allowing CRLF and whitespace-only lines in between.
_PARAGRAPH_RE = re.compile(r"\r?\n(?:[ \t]*\r?\n)+")

PARAGRAPH_SEPARATOR = "\n\n"


def segment_text(content: str, chunk_size: int) -> list[str]:
    """Greedily pack paragraphs into chunks of at most ``chunk_size`` characters.

    Paragraphs are never split, so a single paragraph longer than
    ``chunk_size`` becomes its own oversized chunk. Separator characters do
    not count towards the size.
    """
    if chunk_size <= 0:
        raise ValueError("chunk_size must be positive")
    if not content or not content.strip():
        return []

    chunks: list[str] = []
    buffer: list[str] = []
    buffer_size = 0
    for paragraph in _iter_paragraphs(content):
        if buffer and buffer_size + len(paragraph) > chunk_size:
            chunks.append(PARAGRAPH_SEPARATOR.join(buffer))
            buffer = []
            buffer_size = 0
        buffer.append(paragraph)
        buffer_size += len(paragraph)

    if buffer:
        chunks.append(PARAGRAPH_SEPARATOR.join(buffer))
    return chunks


def _iter_paragraphs(content: str) -> Iterator[str]:
    for paragraph in _PARAGRAPH_RE.split(content):
        if paragraph.strip():
            yield paragraph


__all__ = ["segment_text", "PARAGRAPH_SEPARATOR"]
