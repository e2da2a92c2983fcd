"""Ingestion pipeline — load → chunk → embed → persist.

Each call to :meth:`IngestionPipeline.ingest` is an independent unit of
work that moves through :class:`IngestionStage` in order::

    RECEIVED → LOADED → CHUNKED → EMBEDDED → PERSISTED → COMPLETE
        └──────────┴─────────┴─────────┴──────────┴──→ FAILED

Persistence is an ordered sequence of per-chunk writes, not one
transaction.  The run records every inserted row so a failure part-way
through can be compensated with :meth:`VectorStoreBase.delete_document`
(enabled with ``rollback_on_failure``).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from docqa.errors import DocQAError, InvalidInput, StoreError
from docqa.ingestion.chunker import OverlapWindowSplitter, estimate_tokens
from docqa.ingestion.embedder import EmbeddingClient
from docqa.ingestion.loader import decode_text, load_pdf
from docqa.ingestion.staging import RawFileStaging, UploadedFile
from docqa.retrieval.base import VectorStoreBase
from docqa.retrieval.models import Chunk, Document, FileType
from docqa.retrieval.retriever import CONTEXT_SEPARATOR

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "Text Input"
# Joins the stored chunks back into the document content.
CONTENT_SEPARATOR = CONTEXT_SEPARATOR


class IngestionStage(str, Enum):
    RECEIVED = "received"
    LOADED = "loaded"
    CHUNKED = "chunked"
    EMBEDDED = "embedded"
    PERSISTED = "persisted"
    COMPLETE = "complete"
    FAILED = "failed"


@dataclass
class IngestionRequest:
    """Raw input for one ingestion call.  At least one of *file* / *text* is required."""

    file: UploadedFile | None = None
    text: str | None = None
    title: str | None = None


@dataclass
class IngestionResult:
    """Outcome reported to the caller once a document is stored."""

    document_id: str
    chunks_stored: int
    embeddings_stored: int
    success: bool = True


@dataclass
class IngestionRun:
    """Per-call bookkeeping: current stage and the rows written so far."""

    stage: IngestionStage = IngestionStage.RECEIVED
    document_id: str | None = None
    chunk_ids: list[str] = field(default_factory=list)

    def advance(self, stage: IngestionStage, **details: Any) -> None:
        logger.info("ingestion %s → %s %s", self.stage.value, stage.value, details or "")
        self.stage = stage


class IngestionPipeline:
    """Turn an uploaded file or raw text into stored chunks and embeddings.

    Parameters
    ----------
    chunker:
        Splitter producing the ordered chunk sequence.
    embedder:
        Embedding client; the whole chunk sequence is embedded in one call.
    store:
        Backend receiving the document, chunk and embedding rows.
    staging:
        Where uploaded PDFs are staged while they are parsed.
    max_upload_bytes:
        Uploads larger than this are rejected with :class:`InvalidInput`.
    rollback_on_failure:
        Delete the partially stored document when persistence fails.
    """

    def __init__(
        self,
        chunker: OverlapWindowSplitter,
        embedder: EmbeddingClient,
        store: VectorStoreBase,
        staging: RawFileStaging,
        *,
        max_upload_bytes: int = 10 * 1024 * 1024,
        rollback_on_failure: bool = False,
    ) -> None:
        self._chunker = chunker
        self._embedder = embedder
        self._store = store
        self._staging = staging
        self.max_upload_bytes = max_upload_bytes
        self.rollback_on_failure = rollback_on_failure

    # -- public API -----------------------------------------------------------

    def ingest(self, request: IngestionRequest) -> IngestionResult:
        """Run the full pipeline for *request*.

        Raises
        ------
        InvalidInput
            Neither file nor text was provided, the upload is too large,
            or no text could be extracted.
        EmbeddingProviderError, StoreError
            An upstream dependency failed.
        """
        run = IngestionRun()
        try:
            self._validate(request)

            text, file_type = self._load(request)
            run.advance(IngestionStage.LOADED, file_type=file_type.value, chars=len(text))

            chunks = self._chunker.split_text(text)
            run.advance(IngestionStage.CHUNKED, chunks=len(chunks))

            vectors = self._embedder.embed(chunks)
            run.advance(IngestionStage.EMBEDDED, embeddings=len(vectors))

            document = Document(
                title=self._resolve_title(request),
                content=CONTENT_SEPARATOR.join(chunks),
                file_type=file_type,
            )
            self._persist(run, document, chunks, vectors)
            run.advance(IngestionStage.PERSISTED, document_id=document.id)

            result = IngestionResult(
                document_id=document.id,
                chunks_stored=len(run.chunk_ids),
                embeddings_stored=len(run.chunk_ids),
            )
            run.advance(IngestionStage.COMPLETE)
            return result
        except DocQAError as exc:
            logger.error("Ingestion failed at stage %s: %s", run.stage.value, exc)
            run.advance(IngestionStage.FAILED)
            if self.rollback_on_failure and run.document_id:
                self._rollback(run)
            raise

    # -- stages ---------------------------------------------------------------

    def _validate(self, request: IngestionRequest) -> None:
        if request.file is None and not request.text:
            raise InvalidInput("No file or text provided")
        if request.file is not None and request.file.size > self.max_upload_bytes:
            raise InvalidInput(
                f"File {request.file.filename!r} is too large. "
                f"Max size is {self.max_upload_bytes // (1024 * 1024)} MB."
            )

    def _load(self, request: IngestionRequest) -> tuple[str, FileType]:
        upload = request.file
        if upload is None:
            text, file_type = request.text or "", FileType.TEXT
        elif upload.is_pdf:
            handle = self._staging.stage(upload)
            try:
                text, file_type = load_pdf(handle.path), FileType.PDF
            finally:
                self._staging.release(handle)
        else:
            text, file_type = decode_text(upload.data), FileType.TEXT

        if not text.strip():
            raise InvalidInput("No extractable text in the provided input")
        return text, file_type

    def _persist(
        self,
        run: IngestionRun,
        document: Document,
        chunks: list[str],
        vectors: list[list[float]],
    ) -> None:
        if len(chunks) != len(vectors):
            raise StoreError(f"{len(chunks)} chunks but {len(vectors)} embeddings")

        run.document_id = self._store.insert_document(document)
        logger.info("Document stored with ID: %s", run.document_id)

        for index, (content, vector) in enumerate(zip(chunks, vectors)):
            chunk = Chunk(
                document_id=document.id,
                chunk_index=index,
                content=content,
                token_count=estimate_tokens(content),
            )
            run.chunk_ids.append(self._store.insert_chunk_and_embedding(chunk, vector))
            logger.debug("Stored chunk %d/%d", index + 1, len(chunks))

    def _rollback(self, run: IngestionRun) -> None:
        logger.warning(
            "Rolling back document %s (%d chunk(s) stored)", run.document_id, len(run.chunk_ids)
        )
        try:
            self._store.delete_document(run.document_id)
        except StoreError:
            logger.exception("Rollback of document %s failed", run.document_id)

    @staticmethod
    def _resolve_title(request: IngestionRequest) -> str:
        if request.title:
            return request.title
        if request.file is not None and request.file.filename:
            return request.file.filename
        return DEFAULT_TITLE
