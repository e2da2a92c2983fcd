"""Graph nodes — each method is one step of the answer workflow.

Node contract
-------------
* Accepts the full :class:`AnswerState` dict.
* Returns a *partial* dict with **only the keys that changed**.
* Reaches external systems only through the clients injected into
  :class:`AnswerNodes`, so every node is independently testable.
"""

from __future__ import annotations

import logging
from typing import Any

from docqa.answer.llm import GenerationClient
from docqa.answer.prompts import NO_DOCUMENTS_RESPONSE, build_answer_prompt
from docqa.answer.state import AnswerState
from docqa.errors import StoreError
from docqa.ingestion.embedder import EmbeddingClient
from docqa.retrieval.base import VectorStoreBase
from docqa.retrieval.models import ChatMessage
from docqa.retrieval.retriever import CONTEXT_SEPARATOR, ContextRetriever

logger = logging.getLogger(__name__)


class AnswerNodes:
    """Node callables bound to their collaborators."""

    def __init__(
        self,
        embedder: EmbeddingClient,
        store: VectorStoreBase,
        retriever: ContextRetriever,
        generator: GenerationClient,
    ) -> None:
        self._embedder = embedder
        self._store = store
        self._retriever = retriever
        self._generator = generator

    # ── 1. EMBED QUESTION ─────────────────────────────────────────────

    def embed_question(self, state: AnswerState) -> dict[str, Any]:
        """Embed the question.  Provider failures propagate to the caller."""
        vector = self._embedder.embed_one(state["question"])
        logger.info("Query embedding length: %d", len(vector))
        return {"query_vector": vector}

    # ── 2. CHECK CORPUS ───────────────────────────────────────────────

    def check_corpus(self, state: AnswerState) -> dict[str, Any]:
        """Count stored embeddings; an unavailable count is treated as unknown."""
        try:
            size = self._store.count_embeddings()
        except StoreError:
            logger.warning("Could not count embeddings; continuing with search", exc_info=True)
            return {"corpus_size": None}
        logger.info("Total embeddings in store: %d", size)
        return {"corpus_size": size}

    def no_documents(self, state: AnswerState) -> dict[str, Any]:
        """Fixed answer for an empty corpus; the model is not called."""
        return {
            "response": NO_DOCUMENTS_RESPONSE,
            "sources_used": 0,
            "context_length": 0,
        }

    # ── 3. SEARCH / FALLBACK ──────────────────────────────────────────

    def search_similar(self, state: AnswerState) -> dict[str, Any]:
        matches = self._retriever.search(state["query_vector"])
        return {"matches": matches, "contents": [m.content for m in matches]}

    def fallback_recent(self, state: AnswerState) -> dict[str, Any]:
        """Use the most recent chunks; with no store at all, answer from no context."""
        try:
            contents = self._retriever.fallback()
        except StoreError:
            logger.error("Fallback search failed; answering without context", exc_info=True)
            contents = []
        return {"contents": contents, "used_fallback": True}

    # ── 4. CONTEXT ────────────────────────────────────────────────────

    def build_context(self, state: AnswerState) -> dict[str, Any]:
        contents = state.get("contents", [])
        context = CONTEXT_SEPARATOR.join(contents)
        logger.info(
            "Context: %d chunk(s), %d chars%s",
            len(contents),
            len(context),
            " (fallback)" if state.get("used_fallback") else "",
        )
        return {
            "context": context,
            "sources_used": len(contents),
            "context_length": len(context),
        }

    # ── 5. GENERATE ───────────────────────────────────────────────────

    def generate(self, state: AnswerState) -> dict[str, Any]:
        prompt = build_answer_prompt(state["question"], state.get("context", ""))
        return {"response": self._generator.generate(prompt)}

    # ── 6. RECORD ─────────────────────────────────────────────────────

    def record_chat(self, state: AnswerState) -> dict[str, Any]:
        """Append the exchange to the chat log.  Failure is logged, never raised."""
        message = ChatMessage(user_message=state["question"], assistant_response=state["response"])
        try:
            self._store.insert_chat_message(message)
        except StoreError:
            logger.warning("Failed to store chat message", exc_info=True)
            return {"chat_recorded": False}
        return {"chat_recorded": True}


# ── ROUTING (conditional edges) ────────────────────────────────────────


def route_after_corpus_check(state: AnswerState) -> str:
    """``"no_documents"`` for a known-empty corpus, else ``"search_similar"``."""
    if state.get("corpus_size") == 0:
        return "no_documents"
    return "search_similar"


def route_after_search(state: AnswerState) -> str:
    """``"build_context"`` when search found chunks, else ``"fallback_recent"``."""
    if state.get("matches"):
        return "build_context"
    return "fallback_recent"
