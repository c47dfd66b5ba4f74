"""
FastAPI app: meeting transcript analysis.

POST /api/analyze
  application/json     { "transcript": "...", "model": "..." }  -> { analysis }
  multipart/form-data  file=<audio/video>, model=<id>          -> { analysis, labeledTranscript }
POST /api/rename       { analysis, speakerNames, labeledTranscript? } -> same shape, speakers renamed
GET  /api/models, GET /health, GET / (browser page)

Every failure answers { "error": "..." } with 400, 415, 500 or 504.
"""
from __future__ import annotations

import json
import logging
import os
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import FileResponse, JSONResponse
from pydantic import ValidationError
from starlette.datastructures import UploadFile
from starlette.exceptions import HTTPException as StarletteHTTPException

from meeting_analyzer.config import MODEL_DISPLAY_NAMES, Settings, get_settings
from meeting_analyzer.errors import AnalyzerError, InvalidInputError, UnsupportedMediaTypeError
from meeting_analyzer.llm import GeminiLanguageModel, LanguageModel
from meeting_analyzer.logging_setup import configure_logging
from meeting_analyzer.schemas.analyze import (
    AnalyzeResponse,
    AnalyzeTextRequest,
    ErrorResponse,
    ModelOption,
    RenameRequest,
    RenameResponse,
)
from meeting_analyzer.services.analysis_service import (
    analyze_media,
    analyze_transcript,
    check_upload_name,
    check_upload_size,
    format_size,
    resolve_model,
    run_with_timeout,
)
from meeting_analyzer.speakers.rename import SpeakerRenamer
from meeting_analyzer.transcription import AssemblyAIEngine, TranscriptionEngine

logger = logging.getLogger(__name__)

STATIC_DIR = os.path.join(os.path.dirname(__file__), "static")
_READ_CHUNK_BYTES = 1024 * 1024
# Multipart boundaries, part headers and the model field.
_FORM_OVERHEAD_BYTES = 64 * 1024

_ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    415: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
    504: {"model": ErrorResponse},
}


def get_transcription_engine() -> TranscriptionEngine:
    return AssemblyAIEngine.from_settings()


def get_language_model() -> LanguageModel:
    return GeminiLanguageModel.from_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    configure_logging(settings)
    if not settings.GOOGLE_API_KEY:
        logger.warning("GOOGLE_API_KEY is not set; every analysis request will fail")
    if not settings.ASSEMBLYAI_API_KEY:
        logger.warning("ASSEMBLYAI_API_KEY is not set; file uploads will fail")
    yield


app = FastAPI(
    title="Meeting Analyzer",
    description="Speaker dominance, sentiment, interruptions and action items from meeting transcripts",
    lifespan=lifespan,
)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse({"error": str(exc.detail)}, status_code=exc.status_code, headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    parts = []
    for item in exc.errors():
        loc = ".".join(str(p) for p in item.get("loc", ()) if p != "body") or "body"
        parts.append(f"{loc}: {item.get('msg', 'invalid')}")
    return JSONResponse({"error": "Invalid request: " + "; ".join(parts)}, status_code=400)


@app.get("/health")
async def health() -> dict:
    return {"status": "ok"}


@app.get("/", include_in_schema=False)
async def index() -> FileResponse:
    return FileResponse(os.path.join(STATIC_DIR, "index.html"), media_type="text/html")


@app.get("/api/models", response_model=list[ModelOption])
async def list_models() -> list[ModelOption]:
    settings = get_settings()
    return [ModelOption(id=m, name=MODEL_DISPLAY_NAMES.get(m, m)) for m in settings.ALLOWED_MODELS]


def _media_type(request: Request) -> str:
    return (request.headers.get("content-type") or "").split(";", 1)[0].strip().lower()


async def _read_json_request(request: Request) -> AnalyzeTextRequest:
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise InvalidInputError("Request body must be valid JSON.") from e
    if not isinstance(body, dict):
        raise InvalidInputError("Request body must be a JSON object.")
    try:
        return AnalyzeTextRequest.model_validate(body)
    except ValidationError as e:
        raise InvalidInputError("transcript and model must be strings.") from e


def _upload_body_limit(settings: Settings) -> int:
    return settings.MAX_UPLOAD_BYTES + _FORM_OVERHEAD_BYTES


def _check_content_length(request: Request, settings: Settings) -> None:
    """Reject a declared oversize body before any of it is read."""
    declared = request.headers.get("content-length")
    if declared is None:
        return
    try:
        length = int(declared)
    except ValueError:
        return
    if length > _upload_body_limit(settings):
        raise InvalidInputError(f"File is too large. Max file size: {format_size(settings.MAX_UPLOAD_BYTES)}")


def limit_body(request: Request, limit: int, max_upload_bytes: int) -> Request:
    """
    Same request, but its body stream fails once more than `limit` bytes arrive.
    Covers uploads without Content-Length (chunked) while the form is parsed.
    """
    received = 0
    receive = request.receive

    async def limited_receive():
        nonlocal received
        message = await receive()
        if message["type"] == "http.request":
            received += len(message.get("body", b""))
            if received > limit:
                raise InvalidInputError(f"File is too large. Max file size: {format_size(max_upload_bytes)}")
        return message

    return Request(request.scope, limited_receive)


async def _read_upload(upload: UploadFile, settings: Settings) -> bytes:
    """Copy the spooled upload into memory, checking the size per chunk."""
    chunks: list[bytes] = []
    size = 0
    while True:
        chunk = await upload.read(_READ_CHUNK_BYTES)
        if not chunk:
            break
        size += len(chunk)
        check_upload_size(size, settings)
        chunks.append(chunk)
    check_upload_size(size, settings)
    return b"".join(chunks)


async def _analyze_text(
    request: Request, llm: LanguageModel, settings: Settings
) -> AnalyzeResponse:
    req = await _read_json_request(request)
    transcript = req.transcript or ""
    if not transcript.strip():
        raise InvalidInputError("Transcript is required.")
    model = resolve_model(req.model, settings)
    analysis = await run_with_timeout(
        analyze_transcript(transcript, model, llm),
        settings.ANALYZE_TIMEOUT_SECONDS,
    )
    return AnalyzeResponse(analysis=analysis)


async def _analyze_file(
    request: Request,
    engine: TranscriptionEngine,
    llm: LanguageModel,
    settings: Settings,
) -> AnalyzeResponse:
    _check_content_length(request, settings)
    limited = limit_body(request, _upload_body_limit(settings), settings.MAX_UPLOAD_BYTES)
    async with limited.form() as form:
        upload = form.get("file")
        raw_model = form.get("model")
        if not isinstance(upload, UploadFile):
            raise InvalidInputError("A media file is required.")
        model = resolve_model(raw_model if isinstance(raw_model, str) else None, settings)
        filename = upload.filename or ""
        check_upload_name(filename, settings)
        media = await _read_upload(upload, settings)

    logger.info("Analyzing upload %s (%d bytes) with %s", filename, len(media), model)
    analysis, labeled = await run_with_timeout(
        analyze_media(media, filename, model, engine, llm),
        settings.ANALYZE_TIMEOUT_SECONDS,
    )
    return AnalyzeResponse(analysis=analysis, labeled_transcript=labeled)


@app.post(
    "/api/analyze",
    response_model=AnalyzeResponse,
    response_model_exclude_none=True,
    responses=_ERROR_RESPONSES,
)
async def analyze(
    request: Request,
    engine: TranscriptionEngine = Depends(get_transcription_engine),
    llm: LanguageModel = Depends(get_language_model),
) -> AnalyzeResponse:
    """
    Analyze a transcript (JSON) or an uploaded meeting recording (multipart).
    No partial results: any failure in the chain discards the request.
    """
    settings = get_settings()
    media_type = _media_type(request)
    try:
        if media_type == "application/json":
            return await _analyze_text(request, llm, settings)
        if media_type == "multipart/form-data":
            return await _analyze_file(request, engine, llm, settings)
        raise UnsupportedMediaTypeError(
            f"Unsupported content type '{media_type or 'none'}'. Use application/json or multipart/form-data."
        )
    except AnalyzerError as e:
        if e.status_code >= 500:
            logger.warning("Analysis failed (%s): %s", type(e).__name__, e.message)
        raise HTTPException(status_code=e.status_code, detail=e.message) from e
    except StarletteHTTPException:
        raise
    except Exception as e:
        logger.exception("Analysis failed: %s", e)
        raise HTTPException(status_code=500, detail="Failed to analyze transcript.") from e


@app.post(
    "/api/rename",
    response_model=RenameResponse,
    response_model_exclude_none=True,
    responses={400: {"model": ErrorResponse}},
)
async def rename(request: RenameRequest) -> RenameResponse:
    """Re-render an analysis (and optional labeled transcript) with chosen speaker names."""
    renamer = SpeakerRenamer(request.speaker_names)
    labeled = request.labeled_transcript
    return RenameResponse(
        analysis=renamer.rename_analysis(request.analysis),
        labeled_transcript=renamer.rename_transcript(labeled) if labeled is not None else None,
    )
