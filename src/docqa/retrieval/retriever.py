"""Context retriever — similarity search with a recency fallback.

The fallback favours availability over relevance: when the similarity
search fails or finds nothing above the threshold, the most recently
stored chunks are used as context instead of surfacing an error.

Usage::

    retriever = ContextRetriever(store, match_threshold=0.5, match_count=5)
    matches = retriever.search(query_vector)
    contents = [m.content for m in matches] or retriever.fallback()
"""

from __future__ import annotations

import logging

from docqa.errors import StoreError
from docqa.retrieval.base import VectorStoreBase, validate_search_args
from docqa.retrieval.models import ChunkMatch

logger = logging.getLogger(__name__)

CONTEXT_SEPARATOR = "\n\n"


class ContextRetriever:
    """Select context chunks for a query vector.

    Parameters
    ----------
    store:
        Any :class:`VectorStoreBase` backend.
    match_threshold:
        Minimum cosine similarity for a hit.
    match_count:
        Maximum number of hits.
    fallback_count:
        Number of recent chunks used when search fails or finds nothing.
    """

    def __init__(
        self,
        store: VectorStoreBase,
        *,
        match_threshold: float = 0.5,
        match_count: int = 5,
        fallback_count: int = 3,
    ) -> None:
        validate_search_args(match_threshold, match_count)
        self._store = store
        self.match_threshold = match_threshold
        self.match_count = match_count
        self.fallback_count = fallback_count

    def search(self, query_vector: list[float]) -> list[ChunkMatch]:
        """Similarity search; returns ``[]`` instead of raising on store failure."""
        try:
            matches = self._store.similarity_search(
                query_vector,
                match_threshold=self.match_threshold,
                match_count=self.match_count,
            )
        except StoreError:
            logger.warning("Similarity search failed; falling back to recent chunks", exc_info=True)
            return []
        logger.info("Similarity search returned %d chunk(s)", len(matches))
        return matches

    def fallback(self) -> list[str]:
        """Most recent chunk contents.  Raises :class:`StoreError` if the store fails."""
        contents = self._store.recent_chunks(self.fallback_count)
        logger.info("Using %d fallback chunk(s)", len(contents))
        return contents
