"""Answer state — the dict flowing through every node of the answer graph."""

from __future__ import annotations

from typing import Any, TypedDict

from docqa.retrieval.models import ChunkMatch


class AnswerState(TypedDict):
    """Typed state for one question.

    Attributes
    ----------
    question:
        The user's question (already validated non-empty).
    query_vector:
        Embedding of *question*.
    corpus_size:
        Number of stored embeddings, ``None`` when the count was unavailable.
    matches:
        Similarity-search hits, best first.
    contents:
        Chunk texts selected as context, in context order.
    used_fallback:
        ``True`` when *contents* came from the recent-chunks fallback.
    context:
        *contents* joined with blank lines.
    response:
        The text returned to the caller.
    sources_used:
        Number of chunks in *context*.
    context_length:
        Character length of *context*.
    chat_recorded:
        Whether the chat log write succeeded.
    """

    question: str
    query_vector: list[float]
    corpus_size: int | None
    matches: list[ChunkMatch]
    contents: list[str]
    used_fallback: bool
    context: str
    response: str
    sources_used: int
    context_length: int
    chat_recorded: bool


def create_initial_state(question: str) -> dict[str, Any]:
    """Build the initial state dict for ``graph.invoke()``."""
    return {
        "question": question,
        "query_vector": [],
        "corpus_size": None,
        "matches": [],
        "contents": [],
        "used_fallback": False,
        "context": "",
        "response": "",
        "sources_used": 0,
        "context_length": 0,
        "chat_recorded": False,
    }
