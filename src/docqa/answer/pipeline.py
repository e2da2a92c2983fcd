"""Retrieval & answer pipeline — the public entry point for questions."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from docqa.answer.graph import build_graph
from docqa.answer.llm import GenerationClient
from docqa.answer.nodes import AnswerNodes
from docqa.answer.state import create_initial_state
from docqa.errors import InvalidInput
from docqa.ingestion.embedder import EmbeddingClient
from docqa.retrieval.base import VectorStoreBase
from docqa.retrieval.retriever import ContextRetriever

logger = logging.getLogger(__name__)


@dataclass
class AnswerResult:
    """Answer text plus how much context backed it."""

    response: str
    sources_used: int
    context_length: int
    used_fallback: bool = False


class AnswerPipeline:
    """Answer questions from stored chunks.

    The graph is compiled once; each :meth:`answer` call runs it on a
    fresh state, so concurrent calls share nothing but the clients.

    Parameters
    ----------
    embedder:
        Embedding client shared with ingestion.
    store:
        Backend holding chunks, embeddings and the chat log.
    generator:
        Generation client.
    match_threshold, match_count, fallback_count:
        Search tuning, see :class:`~docqa.retrieval.retriever.ContextRetriever`.
    """

    def __init__(
        self,
        embedder: EmbeddingClient,
        store: VectorStoreBase,
        generator: GenerationClient,
        *,
        match_threshold: float = 0.5,
        match_count: int = 5,
        fallback_count: int = 3,
    ) -> None:
        retriever = ContextRetriever(
            store,
            match_threshold=match_threshold,
            match_count=match_count,
            fallback_count=fallback_count,
        )
        self._graph = build_graph(AnswerNodes(embedder, store, retriever, generator))

    def answer(self, question: Any) -> AnswerResult:
        """Answer *question*.

        Raises
        ------
        InvalidInput
            The question is missing, blank or not a string.
        EmbeddingProviderError
            The question could not be embedded.
        GenerationError
            The model failed to answer.
        """
        if not isinstance(question, str) or not question.strip():
            raise InvalidInput("No message provided")

        logger.info("Processing question (%d chars)", len(question))
        state = self._graph.invoke(create_initial_state(question))
        return AnswerResult(
            response=state["response"],
            sources_used=state["sources_used"],
            context_length=state["context_length"],
            used_fallback=state["used_fallback"],
        )
