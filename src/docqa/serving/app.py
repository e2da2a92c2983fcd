"""FastAPI application exposing ingestion and question answering."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import Depends, FastAPI, File, Form, Request, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from docqa import __version__
from docqa.config import Settings, configure_logging
from docqa.errors import DocQAError, InvalidInput
from docqa.ingestion.pipeline import IngestionRequest
from docqa.ingestion.staging import UploadedFile
from docqa.serving.container import ServiceContainer, build_container

logger = logging.getLogger(__name__)


# ── Request / Response schemas ────────────────────────────────────────
class ChatRequest(BaseModel):
    """Incoming question from the user."""

    message: Any = None


class ChatResponse(BaseModel):
    """Answer plus the amount of context behind it."""

    model_config = ConfigDict(populate_by_name=True)

    response: str
    sources_used: int = Field(alias="sourcesUsed")
    context_length: int = Field(alias="contextLength")


class UploadResponse(BaseModel):
    """Counts of what an ingestion stored."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool
    document_id: str = Field(alias="documentId")
    chunks_stored: int = Field(alias="chunksStored")
    embeddings_stored: int = Field(alias="embeddingsStored")


def _error_response(exc: DocQAError, generic_message: str) -> JSONResponse:
    """User errors keep their message; upstream failures get a generic one."""
    if isinstance(exc, InvalidInput):
        return JSONResponse({"error": str(exc)}, status_code=exc.status_code)
    logger.error("%s: %s", generic_message, exc, exc_info=exc)
    return JSONResponse({"error": generic_message}, status_code=exc.status_code)


def get_container(request: Request) -> ServiceContainer:
    return request.app.state.container


def create_app(
    container: ServiceContainer | None = None,
    settings: Settings | None = None,
) -> FastAPI:
    """Build the API.

    When *container* is ``None`` the services are built from *settings*
    (or the environment) during application start-up.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if container is not None:
            app.state.container = container
        else:
            app_settings = settings or Settings()
            configure_logging(app_settings.log_level)
            app.state.container = build_container(app_settings)
        yield

    app = FastAPI(
        title="DocQA API",
        version=__version__,
        description="Upload documents and ask questions answered from their content.",
        lifespan=lifespan,
    )

    @app.exception_handler(RequestValidationError)
    async def invalid_request(request: Request, exc: RequestValidationError) -> JSONResponse:
        logger.info("Rejected request to %s: %s", request.url.path, exc.errors())
        return JSONResponse({"error": "Invalid request body"}, status_code=400)

    @app.exception_handler(Exception)
    async def unhandled_error(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s", request.url.path)
        return JSONResponse({"error": "Internal server error"}, status_code=500)

    # ── Routes ────────────────────────────────────────────────────────
    @app.get("/health")
    def health(services: ServiceContainer = Depends(get_container)) -> dict[str, str]:
        """Liveness probe; ``degraded`` when the store is unreachable."""
        return {"status": "ok" if services.store.health_check() else "degraded"}

    @app.post("/documents", response_model=UploadResponse)
    def upload_document(
        file: UploadFile | None = File(None),
        text: str | None = Form(None),
        title: str | None = Form(None),
        services: ServiceContainer = Depends(get_container),
    ):
        """Ingest an uploaded file (PDF or plain text) or raw text."""
        upload = None
        if file is not None:
            # One byte past the limit is enough to reject oversized uploads.
            data = file.file.read(services.ingestion.max_upload_bytes + 1)
            upload = UploadedFile(
                filename=file.filename or "upload",
                content_type=file.content_type or "",
                data=data,
            )
        try:
            result = services.ingestion.ingest(IngestionRequest(file=upload, text=text, title=title))
        except DocQAError as exc:
            return _error_response(exc, "Failed to process upload")
        return UploadResponse(
            success=result.success,
            document_id=result.document_id,
            chunks_stored=result.chunks_stored,
            embeddings_stored=result.embeddings_stored,
        )

    @app.post("/chat", response_model=ChatResponse)
    def chat(
        request: ChatRequest,
        services: ServiceContainer = Depends(get_container),
    ):
        """Answer a question from the stored documents."""
        try:
            result = services.answer.answer(request.message)
        except DocQAError as exc:
            return _error_response(exc, "Failed to process chat message")
        return ChatResponse(
            response=result.response,
            sources_used=result.sources_used,
            context_length=result.context_length,
        )

    return app


app = create_app()
