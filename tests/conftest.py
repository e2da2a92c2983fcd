"""Shared pytest configuration and fixtures.

The fakes here stand in for the external collaborators (embedding
provider, vector store, staging) so pipelines can be exercised without
network access.
"""

from __future__ import annotations

import hashlib
import math
import re
from pathlib import Path

import pytest
from langchain_core.embeddings import Embeddings

from docqa.errors import StoreError
from docqa.ingestion.staging import RawFileStaging, StagedFile, UploadedFile
from docqa.retrieval.base import VectorStoreBase, validate_search_args
from docqa.retrieval.models import ChatMessage, Chunk, ChunkMatch, Document

FAKE_DIM = 64


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "integration: marks tests requiring external services")


# ── Fake embedding model ──────────────────────────────────────────────


class HashingEmbeddings(Embeddings):
    """Deterministic bag-of-words embeddings (md5-hashed tokens, L2-normalised)."""

    def __init__(self, dim: int = FAKE_DIM) -> None:
        self.dim = dim
        self.calls: list[list[str]] = []

    def _vector(self, text: str) -> list[float]:
        vec = [0.0] * self.dim
        for token in re.findall(r"[a-z0-9]+", text.lower()):
            bucket = int(hashlib.md5(token.encode()).hexdigest(), 16) % self.dim
            vec[bucket] += 1.0
        norm = math.sqrt(sum(v * v for v in vec)) or 1.0
        return [v / norm for v in vec]

    def embed_documents(self, texts: list[str]) -> list[list[float]]:
        self.calls.append(list(texts))
        return [self._vector(t) for t in texts]

    def embed_query(self, text: str) -> list[float]:
        self.calls.append([text])
        return self._vector(text)


# ── Fake vector store ─────────────────────────────────────────────────


def _cosine(a: list[float], b: list[float]) -> float:
    dot = sum(x * y for x, y in zip(a, b))
    na = math.sqrt(sum(x * x for x in a))
    nb = math.sqrt(sum(y * y for y in b))
    if na == 0 or nb == 0:
        return 0.0
    return dot / (na * nb)


class InMemoryVectorStore(VectorStoreBase):
    """In-memory fake with switches to simulate store failures."""

    def __init__(self) -> None:
        self.documents: dict[str, Document] = {}
        self.chunks: list[Chunk] = []
        self.vectors: dict[str, list[float]] = {}
        self.chat_log: list[ChatMessage] = []
        self.deleted_documents: list[str] = []
        self.fail_search = False
        self.fail_recent = False
        self.fail_count = False
        self.fail_chat = False
        self.fail_chunk_at: int | None = None

    def insert_document(self, document: Document) -> str:
        self.documents[document.id] = document
        return document.id

    def insert_chunk_and_embedding(self, chunk: Chunk, vector: list[float]) -> str:
        if self.fail_chunk_at is not None and chunk.chunk_index == self.fail_chunk_at:
            raise StoreError(f"Failed to store chunk {chunk.chunk_index}")
        self.chunks.append(chunk)
        self.vectors[chunk.id] = vector
        return chunk.id

    def similarity_search(
        self,
        query_vector: list[float],
        *,
        match_threshold: float,
        match_count: int,
    ) -> list[ChunkMatch]:
        validate_search_args(match_threshold, match_count)
        if self.fail_search:
            raise StoreError("Similarity search failed")
        matches = [
            ChunkMatch(
                chunk_id=c.id,
                content=c.content,
                similarity=_cosine(query_vector, self.vectors[c.id]),
                document_id=c.document_id,
                chunk_index=c.chunk_index,
            )
            for c in self.chunks
        ]
        matches = [m for m in matches if m.similarity >= match_threshold]
        matches.sort(key=lambda m: (-m.similarity, m.chunk_id))
        return matches[:match_count]

    def recent_chunks(self, limit: int) -> list[str]:
        if self.fail_recent:
            raise StoreError("Failed to load recent chunks")
        return [c.content for c in reversed(self.chunks)][:limit]

    def count_embeddings(self) -> int:
        if self.fail_count:
            raise StoreError("Failed to count embeddings")
        return len(self.vectors)

    def insert_chat_message(self, message: ChatMessage) -> str:
        if self.fail_chat:
            raise StoreError("Failed to store chat message")
        self.chat_log.append(message)
        return message.id

    def delete_document(self, document_id: str) -> None:
        self.deleted_documents.append(document_id)
        self.documents.pop(document_id, None)
        for chunk in [c for c in self.chunks if c.document_id == document_id]:
            self.chunks.remove(chunk)
            self.vectors.pop(chunk.id, None)

    def health_check(self) -> bool:
        return True


# ── Fake staging ──────────────────────────────────────────────────────


class RecordingStaging(RawFileStaging):
    """Stages to a temp directory and records every stage / release."""

    def __init__(self, root: Path) -> None:
        self.root = root
        self.staged: list[StagedFile] = []
        self.released: list[StagedFile] = []

    def stage(self, upload: UploadedFile) -> StagedFile:
        path = self.root / f"staged-{len(self.staged)}{upload.suffix}"
        path.write_bytes(upload.data)
        handle = StagedFile(path=path)
        self.staged.append(handle)
        return handle

    def release(self, handle: StagedFile) -> None:
        handle.path.unlink(missing_ok=True)
        self.released.append(handle)


# ── Fixtures ──────────────────────────────────────────────────────────


@pytest.fixture()
def fake_embeddings() -> HashingEmbeddings:
    return HashingEmbeddings()


@pytest.fixture()
def memory_store() -> InMemoryVectorStore:
    return InMemoryVectorStore()


@pytest.fixture()
def recording_staging(tmp_path: Path) -> RecordingStaging:
    return RecordingStaging(tmp_path)
