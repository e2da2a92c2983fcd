"""Embedding client — batch-capable, retrying wrapper around a LangChain embedder."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING, Any

import openai

from docqa.errors import EmbeddingProviderError, InvalidConfiguration

if TYPE_CHECKING:
    from langchain_core.embeddings import Embeddings

logger = logging.getLogger(__name__)

# Failures worth another attempt; anything else fails the call at once.
TRANSIENT_ERRORS: tuple[type[Exception], ...] = (
    ConnectionError,
    TimeoutError,
    openai.APIConnectionError,
    openai.RateLimitError,
    openai.InternalServerError,
)


def build_embeddings(
    provider: str,
    model: str,
    *,
    api_key: str = "",
    base_url: str = "",
    timeout: float = 30.0,
) -> Embeddings:
    """Return the configured LangChain embedding model.

    ``huggingface`` runs a sentence-transformer locally with L2-normalised
    output; ``openai`` calls an OpenAI-compatible ``/v1/embeddings`` API.
    Provider-side retries are disabled because :class:`EmbeddingClient`
    owns the retry policy.
    """
    if provider == "huggingface":
        from langchain_huggingface import HuggingFaceEmbeddings

        return HuggingFaceEmbeddings(
            model_name=model,
            encode_kwargs={"normalize_embeddings": True},
        )
    if provider == "openai":
        from langchain_openai import OpenAIEmbeddings

        kwargs: dict[str, Any] = {"model": model, "request_timeout": timeout, "max_retries": 0}
        if api_key:
            kwargs["api_key"] = api_key
        if base_url:
            logger.info("Using OpenAI-compatible embedding endpoint: %s", base_url)
            kwargs["base_url"] = base_url
        return OpenAIEmbeddings(**kwargs)
    raise InvalidConfiguration(f"Unsupported embedding_provider: {provider!r}")


class EmbeddingClient:
    """Order-preserving text → vector mapping with bounded retries.

    A failure anywhere in a batch fails the whole :meth:`embed` call; no
    partial results are returned.  There is no cache: identical texts are
    re-embedded on every call.

    Parameters
    ----------
    embeddings:
        Any LangChain ``Embeddings`` implementation.
    batch_size:
        Number of texts sent per provider call.
    max_attempts:
        Attempts per provider call before giving up.  Only connection,
        timeout, rate-limit and server errors are retried.
    backoff_seconds:
        Initial wait between attempts; doubles after each failure.
    expected_dimension:
        Required vector length.  When ``None`` the length of the first
        vector returned becomes the required length for this client.
    """

    def __init__(
        self,
        embeddings: Embeddings,
        *,
        batch_size: int = 64,
        max_attempts: int = 3,
        backoff_seconds: float = 1.0,
        expected_dimension: int | None = None,
    ) -> None:
        if batch_size < 1:
            raise InvalidConfiguration(f"batch_size must be >= 1, got {batch_size}")
        if max_attempts < 1:
            raise InvalidConfiguration(f"max_attempts must be >= 1, got {max_attempts}")
        self._embeddings = embeddings
        self.batch_size = batch_size
        self.max_attempts = max_attempts
        self.backoff_seconds = backoff_seconds
        self._dimension = expected_dimension or None

    @property
    def dimension(self) -> int | None:
        """Vector length this client enforces (``None`` until known)."""
        return self._dimension

    def embed(self, texts: Sequence[str]) -> list[list[float]]:
        """Embed *texts*, returning one vector per text in the same order."""
        texts = list(texts)
        if not texts:
            return []

        vectors: list[list[float]] = []
        for start in range(0, len(texts), self.batch_size):
            batch = texts[start : start + self.batch_size]
            vectors.extend(self._call(self._embeddings.embed_documents, batch))
            logger.debug("embedded %d / %d", len(vectors), len(texts))

        if len(vectors) != len(texts):
            raise EmbeddingProviderError(
                f"Provider returned {len(vectors)} vectors for {len(texts)} texts"
            )
        return [self._check_vector(v) for v in vectors]

    def embed_one(self, text: str) -> list[float]:
        """Embed a single query text."""
        return self._check_vector(self._call(self._embeddings.embed_query, text))

    # -- internals ------------------------------------------------------------

    def _call(self, fn: Callable[[Any], Any], payload: Any) -> Any:
        last_exc: Exception | None = None
        for attempt in range(1, self.max_attempts + 1):
            try:
                return fn(payload)
            except TRANSIENT_ERRORS as exc:
                last_exc = exc
                if attempt < self.max_attempts:
                    wait = self.backoff_seconds * 2 ** (attempt - 1)
                    logger.warning(
                        "Embedding attempt %d/%d failed (wait %.1fs): %s",
                        attempt,
                        self.max_attempts,
                        wait,
                        exc,
                    )
                    time.sleep(wait)
            except Exception as exc:
                logger.error("Embedding provider rejected the request: %s", exc)
                raise EmbeddingProviderError("Embedding provider rejected the request") from exc
        logger.error("Embedding failed after %d attempt(s)", self.max_attempts)
        raise EmbeddingProviderError(
            f"Failed to generate embedding after {self.max_attempts} attempt(s)"
        ) from last_exc

    def _check_vector(self, vector: Any) -> list[float]:
        try:
            values = [float(x) for x in vector]
        except (TypeError, ValueError) as exc:
            raise EmbeddingProviderError("Provider returned a non-numeric vector") from exc
        if not values:
            raise EmbeddingProviderError("Provider returned an empty vector")
        if self._dimension is None:
            self._dimension = len(values)
            logger.info("Embedding dimension: %d", self._dimension)
        elif len(values) != self._dimension:
            raise EmbeddingProviderError(
                f"Expected {self._dimension}-dimensional vector, got {len(values)}"
            )
        return values
