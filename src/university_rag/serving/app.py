"""FastAPI application exposing ingestion, chat, embedding and TTS over HTTP."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import BinaryIO

from fastapi import Depends, FastAPI, File, Form, Header, Request, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel, ConfigDict, Field

from university_rag import __version__
from university_rag.auth import CallerIdentity, bearer_token
from university_rag.config import configure_logging, settings
from university_rag.errors import AuthError, ForbiddenError, InputError, RagError
from university_rag.services import Services, build_services

logger = logging.getLogger(__name__)


# ── Request / Response schemas ────────────────────────────────────────
class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class ChatRequest(_CamelModel):
    """Incoming question from the user."""

    question: str = ""
    conversation_id: str | None = Field(default=None, alias="conversationId")
    is_voice: bool = Field(default=False, alias="isVoice")
    voice_language: str | None = Field(default=None, alias="voiceLanguage")


class ChatResponse(_CamelModel):
    answer: str
    conversation_id: str = Field(alias="conversationId")
    mode: str
    sources: list[str] = []


class UploadResponse(_CamelModel):
    success: bool = True
    chunks_inserted: int = Field(alias="chunksInserted")
    total_chunks: int = Field(alias="totalChunks")
    chunks_skipped: int = Field(0, alias="chunksSkipped")
    errors: list[dict] | None = None


class EmbedRequest(BaseModel):
    text: str = ""


class EmbedResponse(BaseModel):
    embedding: list[float]


class SpeechRequest(BaseModel):
    text: str = ""
    model: str = ""


# ── Dependencies ──────────────────────────────────────────────────────
def get_services(request: Request) -> Services:
    return request.app.state.services


def current_caller(
    services: Services = Depends(get_services),
    authorization: str | None = Header(default=None),
) -> CallerIdentity:
    """Resolve the bearer token or fail with 401."""
    token = bearer_token(authorization)
    caller = services.authenticator.authenticate(token) if token else None
    if caller is None:
        raise AuthError("Unauthorized")
    return caller


def admin_caller(caller: CallerIdentity = Depends(current_caller)) -> CallerIdentity:
    if not caller.is_admin:
        raise ForbiddenError("Forbidden")
    return caller


# ── App factory ───────────────────────────────────────────────────────
def create_app(services: Services | None = None) -> FastAPI:
    """Build the app; *services* defaults to :func:`build_services` at startup."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if getattr(app.state, "services", None) is None:
            configure_logging(settings.log_level)
            app.state.services = build_services(settings)
        yield

    app = FastAPI(
        title="University RAG API",
        version=__version__,
        description="Document ingestion and grounded question answering over university records.",
        lifespan=lifespan,
    )
    app.state.services = services

    @app.exception_handler(RagError)
    async def rag_error_handler(request: Request, exc: RagError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=InputError.status_code,
            content={"error": "Invalid request body.", "details": jsonable_errors(exc)},
        )

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content={"error": str(exc) or "Internal server error"})

    # ── Routes ────────────────────────────────────────────────────────
    @app.get("/health")
    async def health() -> dict[str, str]:
        """Liveness probe."""
        return {"status": "ok"}

    @app.post("/documents", response_model=UploadResponse, response_model_exclude_none=True)
    def upload_document(
        file: UploadFile | None = File(default=None),
        text: str | None = Form(default=None),
        caller: CallerIdentity = Depends(admin_caller),
        services: Services = Depends(get_services),
    ) -> UploadResponse:
        """Ingest an uploaded ``.pdf`` / ``.txt`` file or pasted text."""
        data = read_upload(file.file, services.ingestion.max_bytes) if file is not None else None
        filename = file.filename if file is not None else None
        logger.info("Upload by %s (%s)", caller.uid, filename or "pasted text")

        report = services.ingestion.ingest(data=data, filename=filename, text=text)
        return UploadResponse(
            chunks_inserted=report.chunks_inserted,
            total_chunks=report.total_chunks,
            chunks_skipped=report.chunks_skipped,
            errors=[e.model_dump() for e in report.errors] or None,
        )

    @app.post("/chat", response_model=ChatResponse)
    def chat(
        body: ChatRequest,
        caller: CallerIdentity = Depends(current_caller),
        services: Services = Depends(get_services),
    ) -> ChatResponse:
        """Answer a question, continuing *conversationId* when given."""
        result = services.answers.answer(
            body.question,
            user_id=caller.uid,
            conversation_id=body.conversation_id,
            voice_language=body.voice_language if body.is_voice else None,
        )
        return ChatResponse(
            answer=result.answer,
            conversation_id=result.conversation_id,
            mode=result.mode,
            sources=result.sources,
        )

    @app.post("/embed", response_model=EmbedResponse)
    def embed(
        body: EmbedRequest,
        caller: CallerIdentity = Depends(current_caller),
        services: Services = Depends(get_services),
    ) -> EmbedResponse:
        return EmbedResponse(embedding=services.embedder.embed(body.text))

    @app.post("/tts")
    def text_to_speech(
        body: SpeechRequest,
        caller: CallerIdentity = Depends(current_caller),
        services: Services = Depends(get_services),
    ) -> Response:
        audio = services.speech.synthesize(body.text, body.model)
        return Response(content=audio, media_type="audio/wav", headers={"Cache-Control": "no-store"})

    return app


def read_upload(stream: BinaryIO, limit: int) -> bytes:
    """Read at most ``limit + 1`` bytes; the pipeline rejects anything longer than *limit*."""
    return stream.read(limit + 1)


def jsonable_errors(exc: RequestValidationError) -> list[dict]:
    return [{"loc": list(err.get("loc", ())), "msg": err.get("msg", "")} for err in exc.errors()]


app = create_app()
