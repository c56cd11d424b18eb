"""Keyword-overlap context building, used when semantic ranking cannot help."""

from __future__ import annotations

import logging
import re
from typing import Iterable, Sequence

from context_builder.core.config import ContextSettings
from context_builder.models.entities import Document
from context_builder.retrieval.formatting import (
    NO_CONTENT_MESSAGE,
    NO_DOCUMENTS_MESSAGE,
    render_document_block,
)

logger = logging.getLogger(__name__)

STOP_WORDS = frozenset(
    {
        "el", "la", "de", "que", "y", "en", "un", "es", "se", "no", "te", "lo",
        "le", "da", "su", "por", "son", "con", "para", "al", "del", "los", "las",
        "una", "como", "pero", "sus", "fue", "ser", "todo", "está", "muy", "ya",
        "o", "cuando", "si", "más", "hasta", "sobre", "también", "me", "mi", "yo",
        "tú", "él", "ella", "nosotros", "ustedes", "ellos", "ellas",
    }
)

MIN_KEYWORD_LENGTH = 3
MIN_SENTENCE_LENGTH = 21
PREVIEW_CHARS = 1000
TRUNCATION_MARKER = "..."

_STRIP_CHARS = ",.!?;:"
_SENTENCE_BOUNDARY_RE = re.compile(r"(?<=[.!?])\s+")


def extract_keywords(query: str) -> list[str]:
    """Lowercased query terms without stop-words or short tokens.

    Order of first appearance is kept. When every term is filtered out the
    unfiltered terms are returned instead, so there is always something to
    match against.
    """
    tokens = [token.lower().strip(_STRIP_CHARS) for token in query.split()]
    tokens = [token for token in tokens if token]
    keywords = [
        token for token in tokens if len(token) >= MIN_KEYWORD_LENGTH and token not in STOP_WORDS
    ]
    return _dedupe(keywords or tokens)


def score_sentence(sentence: str, keywords: Sequence[str]) -> float:
    if not keywords:
        return 0.0
    lowered = sentence.lower()
    return sum(1.0 + 0.1 * len(keyword) for keyword in keywords if keyword.lower() in lowered)


def split_sentences(text: str) -> list[str]:
    if not text or not text.strip():
        return []
    return [
        sentence
        for sentence in _SENTENCE_BOUNDARY_RE.split(text)
        if sentence.strip() and len(sentence) >= MIN_SENTENCE_LENGTH
    ]


class KeywordFallback:
    """Builds a context from the best keyword-matching sentences of each document."""

    def __init__(self, settings: ContextSettings) -> None:
        self.settings = settings

    def extract_relevant_content(self, content: str, keywords: Sequence[str]) -> str:
        if not content or not content.strip():
            return NO_CONTENT_MESSAGE
        scored = [(sentence, score_sentence(sentence, keywords)) for sentence in split_sentences(content)]
        scored = [item for item in scored if item[1] > 0]
        scored.sort(key=lambda item: item[1], reverse=True)
        top = scored[: self.settings.max_sentences_per_document]
        result = " ".join(sentence for sentence, _ in top)
        if not result.strip():
            result = _preview(content)
        return result

    def build_context(self, documents: Sequence[Document], query: str) -> str:
        if not documents:
            return NO_DOCUMENTS_MESSAGE
        keywords = extract_keywords(query)
        logger.debug("Keyword fallback using %s keywords", len(keywords))
        blocks = [
            render_document_block(document, self.extract_relevant_content(document.content, keywords))
            for document in documents[: self.settings.max_documents]
        ]
        return "".join(blocks)


def _preview(content: str) -> str:
    if len(content) > PREVIEW_CHARS:
        return content[:PREVIEW_CHARS] + TRUNCATION_MARKER
    return content


def _dedupe(items: Iterable[str]) -> list[str]:
    seen: set[str] = set()
    unique: list[str] = []
    for item in items:
        if item not in seen:
            seen.add(item)
            unique.append(item)
    return unique


__all__ = [
    "KeywordFallback",
    "STOP_WORDS",
    "extract_keywords",
    "score_sentence",
    "split_sentences",
]
