"""FastAPI app: VTT upload, Zoom transcript fetch, and Zoom webhook relay."""

import traceback
from typing import Any

import httpx
import structlog
from fastapi import APIRouter, Body, Depends, FastAPI, File, Request, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, PlainTextResponse

from vtt_relay.config import Settings, settings
from vtt_relay.errors import InvalidPayloadError, ServiceError, SignatureError, UploadValidationError
from vtt_relay.http_client import get_http_client
from vtt_relay.logging_config import setup_logging
from vtt_relay.schemas import (
    MeetingTranscriptRequest,
    MeetingTranscriptResponse,
    UploadTranscriptResponse,
)
from vtt_relay.tracing import setup_tracing
from vtt_relay.transcript import extract_transcript
from vtt_relay.uploads import read_staged_text, staged_upload
from vtt_relay.webhook import classify_event, relay_event, verify_signature
from vtt_relay.zoom import ZoomClient

SERVICE_NAME = "vtt-relay"

logger = structlog.get_logger(__name__)

upload_router = APIRouter()
meeting_router = APIRouter()
webhook_router = APIRouter()


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def internal_error_response(error: str, exc: Exception, app_settings: Settings) -> JSONResponse:
    """500 body for unexpected failures; the stack is only exposed outside production."""
    content: dict[str, Any] = {"error": error, "message": str(exc) or type(exc).__name__}
    if not app_settings.is_production:
        content["stack"] = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return JSONResponse(status_code=500, content=content)


@upload_router.post("/upload-vtt", response_model=UploadTranscriptResponse)
async def upload_vtt(
    file: list[UploadFile] | None = File(None),
    app_settings: Settings = Depends(get_settings),
) -> UploadTranscriptResponse | JSONResponse:
    """Extract the plain transcript from one uploaded .vtt file."""
    if not file:
        raise UploadValidationError("No file uploaded")
    if len(file) > 1:
        raise UploadValidationError("Only one file may be uploaded")
    upload = file[0]

    logger.info("upload_vtt.start", filename=upload.filename)
    try:
        async with staged_upload(
            upload, app_settings.UPLOAD_DIR, app_settings.MAX_UPLOAD_BYTES
        ) as path:
            raw_text = read_staged_text(path)
            cleaned = extract_transcript(raw_text)
    except ServiceError:
        raise
    except Exception as e:  # noqa: BLE001
        logger.exception("upload_vtt.failed", filename=upload.filename, error=str(e))
        return internal_error_response("Failed to process file", e, app_settings)

    logger.info(
        "upload_vtt.success",
        filename=upload.filename,
        original_length=len(raw_text),
        processed_length=len(cleaned),
    )
    return UploadTranscriptResponse(
        data=cleaned,
        original_length=len(raw_text),
        processed_length=len(cleaned),
    )


@meeting_router.post("/upload-vtt-url", response_model=MeetingTranscriptResponse)
async def upload_vtt_url(
    body: MeetingTranscriptRequest,
    app_settings: Settings = Depends(get_settings),
    client: httpx.AsyncClient = Depends(get_http_client),
) -> MeetingTranscriptResponse:
    """Fetch a meeting's transcript recording from Zoom and extract its plain text."""
    meeting_id = str(body.meeting_id).strip()
    if not meeting_id:
        raise InvalidPayloadError("meetingId must not be empty")
    vtt_text = await ZoomClient(app_settings, client).fetch_meeting_transcript(meeting_id)
    cleaned = extract_transcript(vtt_text)
    logger.info("upload_vtt_url.success", meeting_id=meeting_id, processed_length=len(cleaned))
    return MeetingTranscriptResponse(data=cleaned)


@webhook_router.post("/zoom-webhook")
async def zoom_webhook(
    request: Request,
    payload: dict[str, Any] = Body(...),
    app_settings: Settings = Depends(get_settings),
    client: httpx.AsyncClient = Depends(get_http_client),
) -> dict[str, Any]:
    """Answer URL validation, forward transcript_completed, acknowledge anything else."""
    if app_settings.ZOOM_VERIFY_SIGNATURE and not verify_signature(
        app_settings.ZOOM_WEBHOOK_SECRET_TOKEN,
        request.headers.get("x-zm-request-timestamp"),
        await request.body(),
        request.headers.get("x-zm-signature"),
    ):
        logger.warning("zoom_webhook.signature_rejected", webhook_event=payload.get("event"))
        raise SignatureError()

    result = await relay_event(classify_event(payload), app_settings, client)
    return result.body


def create_app(app_settings: Settings | None = None) -> FastAPI:
    """Build the app around one resolved Settings object."""
    app_settings = app_settings or settings
    setup_logging(
        service_name=SERVICE_NAME,
        environment=app_settings.ENV,
        level=app_settings.LOG_LEVEL,
    )
    setup_tracing(
        service_name=SERVICE_NAME,
        environment=app_settings.ENV,
        otlp_endpoint=app_settings.OTEL_EXPORTER_OTLP_ENDPOINT,
    )
    app_settings.UPLOAD_DIR.mkdir(parents=True, exist_ok=True)

    app = FastAPI(title=SERVICE_NAME)
    app.state.settings = app_settings

    @app.exception_handler(RequestValidationError)
    def validation_exception_handler(_request: Request, exc: RequestValidationError) -> JSONResponse:
        """Return 400 for body validation errors (e.g. missing required fields)."""
        return JSONResponse(status_code=400, content={"error": "Invalid request body"})

    @app.exception_handler(ServiceError)
    def service_exception_handler(request: Request, exc: ServiceError) -> JSONResponse:
        log = logger.warning if exc.status_code < 500 else logger.error
        log(
            "request.failed",
            path=request.url.path,
            status_code=exc.status_code,
            error=exc.message,
        )
        return JSONResponse(status_code=exc.status_code, content=exc.to_content())

    @app.exception_handler(Exception)
    def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error("request.unhandled_error", path=request.url.path, exc_info=exc)
        return internal_error_response("Internal server error", exc, app_settings)

    @app.get("/", response_class=PlainTextResponse)
    def index() -> str:
        return "VTT File Processor API - POST your VTT files to /upload-vtt"

    @app.get("/health")
    def health() -> dict[str, str]:
        """Health check: returns 200 when API is up."""
        return {"status": "ok"}

    app.include_router(upload_router)
    if app_settings.ENABLE_URL_FETCH:
        app.include_router(meeting_router)
    if app_settings.ENABLE_WEBHOOK:
        app.include_router(webhook_router)

    logger.info(
        "app.configured",
        upload_dir=str(app_settings.UPLOAD_DIR),
        url_fetch_enabled=app_settings.ENABLE_URL_FETCH,
        webhook_enabled=app_settings.ENABLE_WEBHOOK,
    )
    return app


app = create_app()
