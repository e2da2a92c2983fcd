"""
Ingestion — staging, loading, chunking, embedding and persisting documents.

This package converts an uploaded PDF or plain text into ordered chunks
whose embeddings are stored through a :class:`~docqa.retrieval.base.VectorStoreBase`.
"""

from docqa.ingestion.chunker import OverlapWindowSplitter, estimate_tokens
from docqa.ingestion.embedder import EmbeddingClient, build_embeddings
from docqa.ingestion.pipeline import (
    IngestionPipeline,
    IngestionRequest,
    IngestionResult,
    IngestionStage,
)
from docqa.ingestion.staging import (
    LocalDiskStaging,
    RawFileStaging,
    S3Staging,
    StagedFile,
    UploadedFile,
    build_staging,
)

__all__ = [
    "EmbeddingClient",
    "IngestionPipeline",
    "IngestionRequest",
    "IngestionResult",
    "IngestionStage",
    "LocalDiskStaging",
    "OverlapWindowSplitter",
    "RawFileStaging",
    "S3Staging",
    "StagedFile",
    "UploadedFile",
    "build_embeddings",
    "build_staging",
    "estimate_tokens",
]
