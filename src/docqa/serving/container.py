"""Service container — every client is built once at start-up and reused."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from docqa.answer.llm import GenerationClient, build_chat_model
from docqa.answer.pipeline import AnswerPipeline
from docqa.config import Settings
from docqa.ingestion.chunker import OverlapWindowSplitter
from docqa.ingestion.embedder import EmbeddingClient, build_embeddings
from docqa.ingestion.pipeline import IngestionPipeline
from docqa.ingestion.staging import build_staging
from docqa.retrieval.base import VectorStoreBase

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    """The pipelines and the store they share."""

    ingestion: IngestionPipeline
    answer: AnswerPipeline
    store: VectorStoreBase


def build_container(settings: Settings) -> ServiceContainer:
    """Construct every client from *settings*.

    Raises :class:`~docqa.errors.InvalidConfiguration` for impossible
    chunking or backend parameters, so a misconfigured deployment fails
    at start-up rather than on the first request.
    """
    from docqa.retrieval.chroma_store import ChromaVectorStore, build_chroma_client
    from docqa.retrieval.records import create_session_factory

    chunker = OverlapWindowSplitter(
        chunk_size=settings.chunk_size,
        chunk_overlap=settings.chunk_overlap,
        separator=settings.chunk_separator,
    )
    embedder = EmbeddingClient(
        build_embeddings(
            settings.embedding_provider,
            settings.embedding_model,
            api_key=settings.openai_api_key,
            base_url=settings.llm_base_url,
            timeout=settings.embedding_timeout_seconds,
        ),
        batch_size=settings.embedding_batch_size,
        max_attempts=settings.embedding_max_attempts,
        backoff_seconds=settings.embedding_backoff_seconds,
        expected_dimension=settings.embedding_dimension or None,
    )
    store = ChromaVectorStore(
        create_session_factory(settings.database_url),
        build_chroma_client(
            settings.chroma_mode,
            host=settings.chroma_host,
            port=settings.chroma_port,
            path=settings.chroma_path,
        ),
        settings.chroma_collection,
    )
    generator = GenerationClient(
        build_chat_model(
            settings.llm_model_name,
            api_key=settings.openai_api_key,
            base_url=settings.llm_base_url,
            temperature=settings.llm_temperature,
            timeout=settings.llm_timeout_seconds,
        )
    )
    logger.info(
        "Services ready (embedding=%s/%s, llm=%s, chroma=%s)",
        settings.embedding_provider,
        settings.embedding_model,
        settings.llm_model_name,
        settings.chroma_mode,
    )

    return ServiceContainer(
        ingestion=IngestionPipeline(
            chunker,
            embedder,
            store,
            build_staging(settings),
            max_upload_bytes=settings.max_upload_bytes,
            rollback_on_failure=settings.rollback_on_failure,
        ),
        answer=AnswerPipeline(
            embedder,
            store,
            generator,
            match_threshold=settings.match_threshold,
            match_count=settings.match_count,
            fallback_count=settings.fallback_count,
        ),
        store=store,
    )
