"""Unit tests for the chunker module."""

from __future__ import annotations

import pytest

from docqa.errors import InvalidConfiguration
from docqa.ingestion.chunker import OverlapWindowSplitter, estimate_tokens


def _lines(n: int, width: int = 60) -> str:
    """*n* numbered lines of roughly *width* characters each."""
    return "\n".join(f"line {i:04d} " + "x" * (width - 10) for i in range(n))


def _reassemble(chunks: list[str], overlap: int) -> str:
    """Undo the overlap: every chunk after the first repeats *overlap* chars."""
    return chunks[0] + "".join(c[overlap:] for c in chunks[1:])


class TestEdgeCases:
    def test_empty_input(self) -> None:
        assert OverlapWindowSplitter().split_text("") == []

    def test_whitespace_only_input(self) -> None:
        assert OverlapWindowSplitter().split_text("  \n\t \n ") == []

    def test_short_input_is_single_chunk(self) -> None:
        text = "The sky is blue. The grass is green."
        assert OverlapWindowSplitter().split_text(text) == [text]

    def test_input_exactly_chunk_size(self) -> None:
        text = "a" * 1000
        assert OverlapWindowSplitter(chunk_size=1000, chunk_overlap=200).split_text(text) == [text]

    @pytest.mark.parametrize(("size", "overlap"), [(100, 100), (100, 150), (0, 0), (10, -1)])
    def test_degenerate_configuration(self, size: int, overlap: int) -> None:
        with pytest.raises(InvalidConfiguration):
            OverlapWindowSplitter(chunk_size=size, chunk_overlap=overlap)

    def test_empty_separator_rejected(self) -> None:
        with pytest.raises(InvalidConfiguration):
            OverlapWindowSplitter(separator="")

    def test_defaults(self) -> None:
        splitter = OverlapWindowSplitter()
        assert splitter.chunk_size == 1000
        assert splitter.chunk_overlap == 200
        assert splitter.separator == "\n"


class TestWindowProperties:
    @pytest.mark.parametrize(
        ("text", "size", "overlap"),
        [
            (_lines(80), 1000, 200),
            (_lines(40, width=25), 120, 30),
            ("word " * 700, 256, 32),
            ("z" * 2500, 300, 50),  # no separator and no whitespace
            (_lines(5, width=400), 500, 100),  # lines longer than the overlap window
        ],
    )
    def test_coverage_overlap_and_size(self, text: str, size: int, overlap: int) -> None:
        chunks = OverlapWindowSplitter(chunk_size=size, chunk_overlap=overlap).split_text(text)

        assert len(chunks) > 1
        assert _reassemble(chunks, overlap) == text
        assert all(len(c) <= size for c in chunks)
        for prev, nxt in zip(chunks, chunks[1:]):
            assert prev[-overlap:] == nxt[:overlap]

    def test_cuts_on_separator_when_available(self) -> None:
        chunks = OverlapWindowSplitter(chunk_size=1000, chunk_overlap=200).split_text(_lines(80))
        assert all(c.endswith("\n") for c in chunks[:-1])

    def test_falls_back_to_whitespace_before_hard_cut(self) -> None:
        text = " ".join(f"w{i:03d}" for i in range(300))  # no newlines
        chunks = OverlapWindowSplitter(chunk_size=100, chunk_overlap=20).split_text(text)
        assert all(c.endswith(" ") for c in chunks[:-1])

    def test_hard_cut_without_any_break(self) -> None:
        chunks = OverlapWindowSplitter(chunk_size=300, chunk_overlap=50).split_text("z" * 1000)
        assert [len(c) for c in chunks[:-1]] == [300] * (len(chunks) - 1)

    def test_deterministic(self) -> None:
        splitter = OverlapWindowSplitter(chunk_size=200, chunk_overlap=40)
        text = _lines(30)
        assert splitter.split_text(text) == splitter.split_text(text)


class TestEstimateTokens:
    def test_word_scaling(self) -> None:
        assert estimate_tokens("one two three four five six seven eight nine ten") == 13

    def test_rounds_up(self) -> None:
        assert estimate_tokens("one") == 2

    def test_empty(self) -> None:
        assert estimate_tokens("   ") == 0
