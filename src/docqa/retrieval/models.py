"""Domain models for stored documents, chunks, embeddings and chat records."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from uuid import uuid4

from pydantic import BaseModel, Field


def _new_id() -> str:
    return uuid4().hex


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class FileType(str, Enum):
    """Kind of input a document was ingested from."""

    PDF = "pdf"
    TEXT = "text"


class Document(BaseModel):
    """One ingested document.  Created once per ingestion call, never mutated.

    Attributes
    ----------
    id:
        Unique identifier.
    title:
        Caller-supplied title, the uploaded filename, or ``"Text Input"``.
    content:
        Full loaded text of the document.
    file_type:
        Whether the text came from a PDF or plain text.
    created_at:
        UTC creation timestamp.
    """

    id: str = Field(default_factory=_new_id)
    title: str
    content: str
    file_type: FileType = FileType.TEXT
    created_at: datetime = Field(default_factory=_utcnow)


class Chunk(BaseModel):
    """A bounded substring of a document, sized for embedding.

    ``chunk_index`` is a dense 0-based ordinal, unique within ``document_id``.
    ``token_count`` is an estimate used for metadata only.
    """

    id: str = Field(default_factory=_new_id)
    document_id: str
    chunk_index: int = Field(ge=0)
    content: str
    token_count: int = 0
    created_at: datetime = Field(default_factory=_utcnow)


class Embedding(BaseModel):
    """The vector stored for exactly one chunk."""

    id: str = Field(default_factory=_new_id)
    chunk_id: str
    vector: list[float]
    created_at: datetime = Field(default_factory=_utcnow)


class ChatMessage(BaseModel):
    """Append-only record pairing a question with the answer given."""

    id: str = Field(default_factory=_new_id)
    user_message: str
    assistant_response: str
    created_at: datetime = Field(default_factory=_utcnow)


class ChunkMatch(BaseModel):
    """A similarity-search hit."""

    chunk_id: str
    content: str
    similarity: float
    document_id: str | None = None
    chunk_index: int | None = None