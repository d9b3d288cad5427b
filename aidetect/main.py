"""
AI Image Detector - FastAPI Application.

Accepts an image upload and answers with a 0-100 score of how likely the
image is AI-generated, a three-way label and a short reason. Analysis is
delegated to external multimodal models (OpenRouter, then xAI); when none is
configured or all of them fail, a deterministic heuristic answers instead.

Endpoints:
- POST /api/detect: Multipart upload (field 'image', or 'file')
- POST /api/detect-base64: JSON body with a base64-encoded image
- GET /health: Service health check and configured providers
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict

from fastapi import Body, Depends, FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse
from pydantic import ValidationError
from starlette.concurrency import run_in_threadpool
from starlette.datastructures import UploadFile

from aidetect import __version__
from aidetect.config import settings
from aidetect.detector import Detector
from aidetect.preprocess import decode_base64_image
from aidetect.schemas import (
    Base64ImageRequest,
    DetectResponse,
    ErrorResponse,
    HealthResponse,
)

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

# Built once at import; providers hold their own HTTP clients
detector = Detector.from_settings(settings)


def get_detector() -> Detector:
    return detector


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Log the effective configuration at startup."""
    logger.info("Starting AI Image Detector %s", __version__)
    logger.info("Settings: %r", settings)
    if detector.fallback_only:
        logger.warning("No provider API key configured; only the heuristic fallback will run")
    else:
        logger.info("Providers: %s", ", ".join(detector.provider_names))

    yield

    logger.info("Shutting down AI Image Detector")


app = FastAPI(
    title="AI Image Detector",
    description=(
        "Scores how likely an uploaded image is AI-generated, using external "
        "multimodal models with a deterministic fallback."
    ),
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)

ERROR_RESPONSES: Dict[int, Dict[str, Any]] = {
    400: {"model": ErrorResponse, "description": "Invalid request or image"},
    413: {"model": ErrorResponse, "description": "Image too large"},
    500: {"model": ErrorResponse, "description": "Internal server error"},
}


# =============================================================================
# Utility Routes
# =============================================================================

@app.get("/", include_in_schema=False)
def root() -> RedirectResponse:
    """Redirect root to API documentation."""
    return RedirectResponse(url="/docs")


@app.get(
    "/health",
    response_model=HealthResponse,
    tags=["Health"],
    summary="Service health check",
)
def health(detector: Detector = Depends(get_detector)) -> HealthResponse:
    return HealthResponse(
        status="ok",
        providers=detector.provider_names,
        fallback_only=detector.fallback_only,
    )


# =============================================================================
# Detection Routes
# =============================================================================

def _check_size(size: int) -> None:
    if size > settings.max_upload_bytes:
        raise HTTPException(
            status_code=413,
            detail=f"Image too large (max {settings.max_upload_mb}MB)",
        )


@app.post(
    "/api/detect",
    response_model=DetectResponse,
    responses=ERROR_RESPONSES,
    tags=["Detection"],
    summary="Score an uploaded image",
    description=(
        "Multipart upload with the image in the 'image' field ('file' is "
        "accepted as an alias). Images must be image/* and at most 6MB."
    ),
)
async def detect(
    request: Request,
    detector: Detector = Depends(get_detector),
) -> DetectResponse:
    content_type = request.headers.get("content-type", "")
    if not content_type.lower().startswith("multipart/form-data"):
        raise HTTPException(status_code=400, detail="Expected multipart/form-data")

    try:
        form = await request.form()
    except Exception as exc:
        raise HTTPException(status_code=400, detail="Expected multipart/form-data") from exc

    upload = form.get("image")
    if not isinstance(upload, UploadFile):
        upload = form.get("file")
    if not isinstance(upload, UploadFile):
        raise HTTPException(status_code=400, detail="Missing image")

    mime_type = upload.content_type or ""
    if not mime_type.startswith("image/"):
        raise HTTPException(status_code=400, detail="Invalid file type")

    if upload.size is not None:
        _check_size(upload.size)
    data = await upload.read()
    _check_size(len(data))

    return await run_in_threadpool(detector.detect, data, mime_type)


@app.post(
    "/api/detect-base64",
    response_model=DetectResponse,
    responses=ERROR_RESPONSES,
    tags=["Detection"],
    summary="Score a base64-encoded image",
    description=(
        "JSON body with 'image_base64', either bare base64 or a data URL. "
        "The MIME type is taken from the data URL when present."
    ),
)
async def detect_base64(
    payload: Dict[str, Any] = Body(...),
    detector: Detector = Depends(get_detector),
) -> DetectResponse:
    try:
        request_body = Base64ImageRequest.model_validate(payload)
    except ValidationError as exc:
        raise HTTPException(
            status_code=400,
            detail="Missing required field: 'image_base64'"
        ) from exc

    try:
        data, mime_type = decode_base64_image(request_body.image_base64)
    except ValueError as exc:
        raise HTTPException(
            status_code=400,
            detail=f"Invalid base64 encoding: {exc}"
        ) from exc

    if not mime_type.startswith("image/"):
        raise HTTPException(status_code=400, detail="Invalid file type")
    _check_size(len(data))

    return await run_in_threadpool(detector.detect, data, mime_type)


# =============================================================================
# Error Handlers
# =============================================================================

@app.exception_handler(HTTPException)
def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handle HTTP exceptions with consistent error response format."""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": True,
            "detail": exc.detail,
            "status_code": exc.status_code,
        }
    )


@app.exception_handler(RequestValidationError)
def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Render malformed request bodies as a 400 error response."""
    return JSONResponse(
        status_code=400,
        content={
            "error": True,
            "detail": "Invalid request body",
            "status_code": 400,
        }
    )


@app.exception_handler(Exception)
def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions."""
    logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=500,
        content={
            "error": True,
            "detail": "Server error",
            "status_code": 500,
        }
    )
