"""Error kinds raised by the ingestion and answer pipelines.

``InvalidInput`` is user-correctable (HTTP 400).  The upstream kinds
(``EmbeddingProviderError``, ``GenerationError``, ``StoreError``) map to
HTTP 500.  ``InvalidConfiguration`` is a programmer error surfaced at
start-up when a component is constructed with impossible parameters.
"""

from __future__ import annotations


class DocQAError(Exception):
    """Base class for every error the service raises on purpose."""

    status_code: int = 500


class InvalidInput(DocQAError):
    """Raised when a request is missing fields or carries unusable data."""

    status_code = 400


class InvalidConfiguration(DocQAError):
    """Raised when a component is configured with impossible parameters."""


class EmbeddingProviderError(DocQAError):
    """Raised when the embedding provider fails or returns malformed vectors."""


class GenerationError(DocQAError):
    """Raised when the generation model fails to produce a response."""


class StoreError(DocQAError):
    """Raised when the relational or vector store rejects an operation."""
