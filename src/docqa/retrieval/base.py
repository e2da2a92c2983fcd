"""Abstract base class for vector-store backends.

A backend owns four kinds of rows (documents, chunks, embeddings, chat
messages) plus one similarity-search primitive.  Adding a backend only
requires subclassing :class:`VectorStoreBase`; the pipelines are
backend-agnostic.

Every method raises :class:`~docqa.errors.StoreError` on store-level
failure.  Backends never retry; retry policy belongs to the caller.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from docqa.errors import InvalidInput
from docqa.retrieval.models import ChatMessage, Chunk, ChunkMatch, Document


class VectorStoreBase(ABC):
    """Backend-agnostic document / chunk / embedding store."""

    # -- required overrides ---------------------------------------------------

    @abstractmethod
    def insert_document(self, document: Document) -> str:
        """Persist *document* and return its id."""
        ...

    @abstractmethod
    def insert_chunk_and_embedding(self, chunk: Chunk, vector: list[float]) -> str:
        """Persist *chunk* and its embedding, returning the stored chunk id.

        The chunk write happens-before the embedding write, and an embedding
        is never left visible without its chunk.  Implementations may use a
        transaction, a batched insert, or a compensating delete.
        """
        ...

    @abstractmethod
    def similarity_search(
        self,
        query_vector: list[float],
        *,
        match_threshold: float,
        match_count: int,
    ) -> list[ChunkMatch]:
        """Return at most *match_count* chunks ranked by cosine similarity.

        Results are ordered by descending similarity and none scores below
        *match_threshold*.
        """
        ...

    @abstractmethod
    def recent_chunks(self, limit: int) -> list[str]:
        """Return the content of the *limit* most recently created chunks, newest first."""
        ...

    @abstractmethod
    def count_embeddings(self) -> int:
        """Return the number of stored embeddings."""
        ...

    @abstractmethod
    def insert_chat_message(self, message: ChatMessage) -> str:
        """Append *message* to the chat log and return its id."""
        ...

    @abstractmethod
    def delete_document(self, document_id: str) -> None:
        """Remove a document with all of its chunks and embeddings."""
        ...

    @abstractmethod
    def health_check(self) -> bool:
        """Return ``True`` when the backend is reachable and ready."""
        ...


def validate_search_args(match_threshold: float, match_count: int) -> None:
    """Reject similarity-search arguments outside their documented ranges."""
    if not 0.0 <= match_threshold <= 1.0:
        raise InvalidInput(f"match_threshold must be in [0, 1], got {match_threshold}")
    if match_count < 1:
        raise InvalidInput(f"match_count must be a positive integer, got {match_count}")
