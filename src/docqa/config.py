"""Shared configuration loaded from environment / .env file."""

from __future__ import annotations

import logging

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application-wide settings, populated from ``DOCQA_*`` env vars or a .env file."""

    # LLM
    openai_api_key: str = Field(default="", description="OpenAI API key (or dummy value for local vLLM)")
    llm_model_name: str = Field(default="gpt-4o-mini", description="Chat model identifier")
    llm_base_url: str = Field(
        default="",
        description=(
            "Base URL for an OpenAI-compatible API. Leave empty to use OpenAI cloud."
        ),
    )
    llm_temperature: float = 0.0
    llm_timeout_seconds: float = 60.0

    # Embedding
    embedding_provider: str = Field(default="huggingface", description="'huggingface' or 'openai'")
    embedding_model: str = "sentence-transformers/all-MiniLM-L6-v2"
    embedding_dimension: int = Field(
        default=0,
        description="Expected vector length; 0 disables the check.",
    )
    embedding_batch_size: int = 64
    embedding_max_attempts: int = 3
    embedding_backoff_seconds: float = 1.0
    embedding_timeout_seconds: float = 30.0

    # Chunking
    chunk_size: int = 1000
    chunk_overlap: int = 200
    chunk_separator: str = "\n"

    # Retrieval
    match_threshold: float = Field(default=0.5, ge=0.0, le=1.0)
    match_count: int = Field(default=5, ge=1)
    fallback_count: int = Field(default=3, ge=1)

    # Relational store
    database_url: str = "sqlite:///./docqa.db"

    # Vector store
    chroma_mode: str = Field(default="http", description="'http', 'persistent' or 'ephemeral'")
    chroma_host: str = "localhost"
    chroma_port: int = 8000
    chroma_path: str = "./chroma"
    chroma_collection: str = "docqa_chunks"

    # Raw-file staging
    staging_backend: str = Field(default="local", description="'local' or 's3'")
    upload_dir: str = "./uploads"
    s3_bucket: str = ""
    s3_endpoint: str = ""
    s3_region: str = "us-east-1"
    s3_access_key: str = ""
    s3_secret_key: str = ""

    # Ingestion
    max_upload_bytes: int = 10 * 1024 * 1024
    rollback_on_failure: bool = False

    log_level: str = "INFO"

    model_config = SettingsConfigDict(env_prefix="DOCQA_", env_file=".env", env_file_encoding="utf-8")


def configure_logging(level: str = "INFO") -> None:
    """Install a root handler once; later calls only adjust the level."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logging.getLogger().setLevel(getattr(logging, level.upper(), logging.INFO))

