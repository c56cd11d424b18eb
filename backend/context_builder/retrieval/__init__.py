"""Context construction components."""

from .assembler import ContextAssembler, ContextOutcome, ContextResult
from .keywords import KeywordFallback, extract_keywords, score_sentence, split_sentences
from .ranker import estimate_tokens, rank_chunks, select_chunks

__all__ = [
    "ContextAssembler",
    "ContextOutcome",
    "ContextResult",
    "KeywordFallback",
    "extract_keywords",
    "score_sentence",
    "split_sentences",
    "estimate_tokens",
    "rank_chunks",
    "select_chunks",
]
