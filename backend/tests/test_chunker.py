"""Tests for chunker."""

import pytest

from context_builder.ingest.chunker import PARAGRAPH_SEPARATOR, segment_text


def test_paragraphs_are_packed_greedily() -> None:
    chunks = segment_text("aaaa\n\nbbbb\n\ncccc", chunk_size=8)
    assert chunks == ["aaaa\n\nbbbb", "cccc"]


def test_oversized_paragraph_is_never_split() -> None:
    long_paragraph = "x" * 30
    chunks = segment_text(f"{long_paragraph}\n\nshort", chunk_size=10)
    assert chunks == [long_paragraph, "short"]


def test_crlf_and_blank_whitespace_lines_are_boundaries() -> None:
    assert segment_text("one\r\n\r\ntwo", chunk_size=3) == ["one", "two"]
    assert segment_text("one\n   \n\ntwo", chunk_size=3) == ["one", "two"]


def test_single_line_break_is_not_a_boundary() -> None:
    assert segment_text("line one\nline two", chunk_size=5) == ["line one\nline two"]


@pytest.mark.parametrize("content", ["", "   ", "\n\n\n"])
def test_blank_content_produces_no_chunks(content: str) -> None:
    assert segment_text(content, chunk_size=100) == []


def test_chunks_reconstruct_paragraphs(sample_text: str) -> None:
    chunks = segment_text(sample_text, chunk_size=16)
    assert len(chunks) > 1
    assert PARAGRAPH_SEPARATOR.join(chunks) == sample_text


def test_invalid_chunk_size() -> None:
    with pytest.raises(ValueError):
        segment_text("text", chunk_size=0)
