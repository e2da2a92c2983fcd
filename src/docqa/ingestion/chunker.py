"""Text chunking strategies."""

from __future__ import annotations

import math
from typing import Any

from langchain_text_splitters import TextSplitter

from docqa.errors import InvalidConfiguration

# Rough subword tokens per whitespace-delimited word.
TOKENS_PER_WORD = 1.3


class OverlapWindowSplitter(TextSplitter):
    """Split text into overlapping character windows that prefer natural breaks.

    Every chunk is an exact substring of the input.  A chunk ends just after
    the last *separator* inside its window, falling back to the last
    whitespace character and only then to a hard cut at ``chunk_size``.
    The next chunk begins ``chunk_overlap`` characters before the previous
    one ended, so consecutive chunks share at least ``chunk_overlap``
    characters and the chunks cover the input with no gap.

    Parameters
    ----------
    chunk_size:
        Maximum number of characters per chunk.
    chunk_overlap:
        Number of characters repeated from the tail of the previous chunk.
    separator:
        Preferred split boundary (newline by default).
    """

    def __init__(
        self,
        chunk_size: int = 1000,
        chunk_overlap: int = 200,
        separator: str = "\n",
        **kwargs: Any,
    ) -> None:
        if chunk_size <= 0:
            raise InvalidConfiguration(f"chunk_size must be positive, got {chunk_size}")
        if chunk_overlap < 0:
            raise InvalidConfiguration(f"chunk_overlap must be >= 0, got {chunk_overlap}")
        if chunk_overlap >= chunk_size:
            raise InvalidConfiguration(
                f"chunk_overlap ({chunk_overlap}) must be < chunk_size ({chunk_size})"
            )
        if not separator:
            raise InvalidConfiguration("separator must be a non-empty string")
        super().__init__(chunk_size=chunk_size, chunk_overlap=chunk_overlap, **kwargs)
        self.separator = separator

    @property
    def chunk_size(self) -> int:
        return self._chunk_size

    @property
    def chunk_overlap(self) -> int:
        return self._chunk_overlap

    def split_text(self, text: str) -> list[str]:
        if not text or not text.strip():
            return []

        size, overlap = self._chunk_size, self._chunk_overlap
        if len(text) <= size:
            return [text]

        chunks: list[str] = []
        start = 0
        while start + size < len(text):
            end = self._find_cut(text, start, start + size)
            chunks.append(text[start:end])
            start = end - overlap
        chunks.append(text[start:])
        return chunks

    def _find_cut(self, text: str, start: int, limit: int) -> int:
        """Return the end offset of the chunk beginning at *start*.

        The cut always lies in ``(start + overlap, limit]`` so the next
        window starts strictly after this one.
        """
        lower = start + self._chunk_overlap

        pos = text.rfind(self.separator, lower, limit)
        if pos != -1:
            return pos + len(self.separator)

        for i in range(limit - 1, lower - 1, -1):
            if text[i].isspace():
                return i + 1

        return limit


def estimate_tokens(text: str) -> int:
    """Cheap token estimate for storage metadata (words × 1.3, rounded up)."""
    words = text.split()
    return math.ceil(len(words) * TOKENS_PER_WORD)
