"""
Relational rows for documents, chunks and the chat log.

Chunk texts live in the relational DB so recency queries and compensating
deletes do not depend on vector-store internals; the vectors themselves
live in the vector store keyed by chunk id.
"""

from __future__ import annotations

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String, Text, create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

Base = declarative_base()


class DocumentRow(Base):
    __tablename__ = "documents"

    id = Column(String(32), primary_key=True)
    title = Column(Text, nullable=False)
    content = Column(Text, nullable=False)
    file_type = Column(String(16), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False)


class ChunkRow(Base):
    __tablename__ = "document_chunks"

    # Insertion order; ``recent_chunks`` sorts on it.
    seq = Column(Integer, primary_key=True, autoincrement=True)
    id = Column(String(32), unique=True, nullable=False)
    document_id = Column(String(32), ForeignKey("documents.id"), nullable=False, index=True)
    chunk_index = Column(Integer, nullable=False)
    content = Column(Text, nullable=False)
    token_count = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        Index("ix_document_chunks_doc_idx", "document_id", "chunk_index", unique=True),
    )


class ChatMessageRow(Base):
    __tablename__ = "chat_messages"

    id = Column(String(32), primary_key=True)
    user_message = Column(Text, nullable=False)
    assistant_response = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False)


def create_session_factory(database_url: str, *, echo: bool = False) -> sessionmaker:
    """Create the engine, ensure tables exist, and return a session factory."""
    is_sqlite = database_url.startswith("sqlite")
    is_memory_sqlite = database_url in {"sqlite://", "sqlite:///:memory:"}

    engine_kwargs: dict = {"echo": echo}
    if is_sqlite:
        engine_kwargs["connect_args"] = {"check_same_thread": False}
        if is_memory_sqlite:
            engine_kwargs["poolclass"] = StaticPool
    else:
        engine_kwargs["pool_pre_ping"] = True

    engine = create_engine(database_url, **engine_kwargs)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)
