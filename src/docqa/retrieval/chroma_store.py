"""Chroma + SQLAlchemy implementation of the vector-store abstraction.

Relational rows (documents, chunks, chat log) go through SQLAlchemy;
embeddings go to a Chroma collection in cosine space, keyed by chunk id.
"""

from __future__ import annotations

import logging
from typing import Any

import chromadb
from sqlalchemy import delete, select, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from docqa.errors import InvalidConfiguration, StoreError
from docqa.retrieval.base import VectorStoreBase, validate_search_args
from docqa.retrieval.models import ChatMessage, Chunk, ChunkMatch, Document, Embedding
from docqa.retrieval.records import ChatMessageRow, ChunkRow, DocumentRow

logger = logging.getLogger(__name__)


def build_chroma_client(
    mode: str = "http",
    *,
    host: str = "localhost",
    port: int = 8000,
    path: str = "./chroma",
) -> Any:
    """Return a Chroma client for the configured deployment *mode*."""
    if mode == "http":
        return chromadb.HttpClient(host=host, port=port)
    if mode == "persistent":
        return chromadb.PersistentClient(path=path)
    if mode == "ephemeral":
        return chromadb.EphemeralClient()
    raise InvalidConfiguration(f"Unsupported chroma_mode: {mode!r}")


class ChromaVectorStore(VectorStoreBase):
    """Chroma-backed vector store with relational rows in SQLAlchemy.

    Parameters
    ----------
    session_factory:
        SQLAlchemy session factory (see
        :func:`~docqa.retrieval.records.create_session_factory`).
    client:
        A Chroma client (HTTP, persistent or ephemeral).
    collection_name:
        Name of the Chroma collection holding chunk embeddings.
    """

    def __init__(
        self,
        session_factory: sessionmaker,
        client: Any,
        collection_name: str = "docqa_chunks",
    ) -> None:
        self._session_factory = session_factory
        self._client = client
        self.collection_name = collection_name
        try:
            self._collection = client.get_or_create_collection(
                collection_name,
                metadata={"hnsw:space": "cosine"},
            )
        except Exception as exc:
            raise StoreError(f"Could not open Chroma collection {collection_name!r}") from exc

    # -- VectorStoreBase overrides --------------------------------------------

    def insert_document(self, document: Document) -> str:
        row = DocumentRow(
            id=document.id,
            title=document.title,
            content=document.content,
            file_type=document.file_type.value,
            created_at=document.created_at,
        )
        try:
            with self._session_factory() as session:
                session.add(row)
                session.commit()
        except SQLAlchemyError as exc:
            raise StoreError("Failed to store document") from exc
        return document.id

    def insert_chunk_and_embedding(self, chunk: Chunk, vector: list[float]) -> str:
        embedding = Embedding(chunk_id=chunk.id, vector=vector)

        try:
            with self._session_factory() as session:
                session.add(
                    ChunkRow(
                        id=chunk.id,
                        document_id=chunk.document_id,
                        chunk_index=chunk.chunk_index,
                        content=chunk.content,
                        token_count=chunk.token_count,
                        created_at=chunk.created_at,
                    )
                )
                session.commit()
        except SQLAlchemyError as exc:
            raise StoreError(f"Failed to store chunk {chunk.chunk_index}") from exc

        try:
            self._collection.add(
                ids=[chunk.id],
                embeddings=[embedding.vector],
                documents=[chunk.content],
                metadatas=[
                    {
                        "document_id": chunk.document_id,
                        "chunk_index": chunk.chunk_index,
                        "embedding_id": embedding.id,
                        "created_at": embedding.created_at.isoformat(),
                    }
                ],
            )
        except Exception as exc:
            logger.error("Embedding insert failed for chunk %s; removing chunk row", chunk.id)
            self._delete_chunk_rows([chunk.id])
            raise StoreError(f"Failed to store embedding for chunk {chunk.chunk_index}") from exc

        return chunk.id

    def similarity_search(
        self,
        query_vector: list[float],
        *,
        match_threshold: float,
        match_count: int,
    ) -> list[ChunkMatch]:
        validate_search_args(match_threshold, match_count)
        try:
            results = self._collection.query(
                query_embeddings=[query_vector],
                n_results=match_count,
                include=["documents", "metadatas", "distances"],
            )
        except Exception as exc:
            raise StoreError("Similarity search failed") from exc

        ids = (results.get("ids") or [[]])[0]
        docs = (results.get("documents") or [[]])[0]
        metas = (results.get("metadatas") or [[]])[0]
        distances = (results.get("distances") or [[]])[0]

        matches: list[ChunkMatch] = []
        for chunk_id, content, meta, dist in zip(ids, docs, metas, distances):
            # Cosine space: distance = 1 - cosine similarity.
            similarity = 1.0 - float(dist)
            if similarity < match_threshold:
                continue
            meta = meta or {}
            matches.append(
                ChunkMatch(
                    chunk_id=chunk_id,
                    content=content or "",
                    similarity=similarity,
                    document_id=meta.get("document_id"),
                    chunk_index=meta.get("chunk_index"),
                )
            )

        matches.sort(key=lambda m: (-m.similarity, m.chunk_id))
        return matches[:match_count]

    def recent_chunks(self, limit: int) -> list[str]:
        try:
            with self._session_factory() as session:
                rows = session.execute(
                    select(ChunkRow.content).order_by(ChunkRow.seq.desc()).limit(limit)
                ).scalars().all()
        except SQLAlchemyError as exc:
            raise StoreError("Failed to load recent chunks") from exc
        return list(rows)

    def count_embeddings(self) -> int:
        try:
            return int(self._collection.count())
        except Exception as exc:
            raise StoreError("Failed to count embeddings") from exc

    def insert_chat_message(self, message: ChatMessage) -> str:
        row = ChatMessageRow(
            id=message.id,
            user_message=message.user_message,
            assistant_response=message.assistant_response,
            created_at=message.created_at,
        )
        try:
            with self._session_factory() as session:
                session.add(row)
                session.commit()
        except SQLAlchemyError as exc:
            raise StoreError("Failed to store chat message") from exc
        return message.id

    def delete_document(self, document_id: str) -> None:
        try:
            with self._session_factory() as session:
                chunk_ids = session.execute(
                    select(ChunkRow.id).where(ChunkRow.document_id == document_id)
                ).scalars().all()
        except SQLAlchemyError as exc:
            raise StoreError(f"Failed to look up chunks of document {document_id}") from exc

        if chunk_ids:
            try:
                self._collection.delete(ids=list(chunk_ids))
            except Exception as exc:
                raise StoreError(f"Failed to delete embeddings of document {document_id}") from exc

        try:
            with self._session_factory() as session:
                session.execute(delete(ChunkRow).where(ChunkRow.document_id == document_id))
                session.execute(delete(DocumentRow).where(DocumentRow.id == document_id))
                session.commit()
        except SQLAlchemyError as exc:
            raise StoreError(f"Failed to delete document {document_id}") from exc

    def health_check(self) -> bool:
        try:
            self._client.heartbeat()
            with self._session_factory() as session:
                session.execute(text("SELECT 1"))
            return True
        except Exception:
            logger.warning("Store health-check failed", exc_info=True)
            return False

    # -- internals ------------------------------------------------------------

    def _delete_chunk_rows(self, chunk_ids: list[str]) -> None:
        try:
            with self._session_factory() as session:
                session.execute(delete(ChunkRow).where(ChunkRow.id.in_(chunk_ids)))
                session.commit()
        except SQLAlchemyError:
            logger.exception("Compensating delete failed for chunks %s", chunk_ids)
