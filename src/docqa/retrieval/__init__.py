"""
Retrieval — storage of chunks and embeddings, similarity search, fallback.

Public surface
--------------
- :class:`VectorStoreBase` — abstract backend.
- :class:`ChromaVectorStore` — default Chroma + SQLAlchemy backend.
- :class:`ContextRetriever` — similarity search with the recency fallback.
- :class:`Document`, :class:`Chunk`, :class:`Embedding`,
  :class:`ChatMessage`, :class:`ChunkMatch` — data models.
"""

from docqa.retrieval.base import VectorStoreBase
from docqa.retrieval.models import ChatMessage, Chunk, ChunkMatch, Document, Embedding, FileType
from docqa.retrieval.retriever import CONTEXT_SEPARATOR, ContextRetriever

__all__ = [
    "CONTEXT_SEPARATOR",
    "ChatMessage",
    "ChromaVectorStore",
    "Chunk",
    "ChunkMatch",
    "ContextRetriever",
    "Document",
    "Embedding",
    "FileType",
    "VectorStoreBase",
]


def __getattr__(name: str):  # noqa: ANN001
    """Lazy-import ChromaVectorStore to avoid pulling in chromadb at import time."""
    if name == "ChromaVectorStore":
        from docqa.retrieval.chroma_store import ChromaVectorStore

        return ChromaVectorStore
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
