"""
Error taxonomy shared by every stage.

Services raise these; a single FastAPI exception handler turns them into
``{"error": message}`` responses. Nothing here is ever retried.
"""

from __future__ import annotations

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from trendspark.core.logging import get_logger

logger = get_logger(__name__)


class PipelineError(Exception):
    """Base class: a tagged ``{kind, status, message}`` failure."""

    kind = "pipeline_error"
    default_status = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code or self.default_status

    def to_dict(self) -> dict:
        return {"kind": self.kind, "status": self.status_code, "message": self.message}


class ConfigError(PipelineError):
    """A provider credential is missing. Raised before any network call."""

    kind = "config_error"
    default_status = status.HTTP_503_SERVICE_UNAVAILABLE


class ValidationError(PipelineError):
    kind = "validation_error"
    default_status = status.HTTP_400_BAD_REQUEST


class UpstreamError(PipelineError):
    """The provider answered with a non-success status."""

    kind = "upstream_error"
    default_status = status.HTTP_502_BAD_GATEWAY


class NetworkError(PipelineError):
    """Timeout or no response from the provider."""

    kind = "network_error"
    default_status = status.HTTP_504_GATEWAY_TIMEOUT


class ExtractionFailed(PipelineError):
    kind = "extraction_failed"
    default_status = status.HTTP_422_UNPROCESSABLE_CONTENT


class EmptyResponse(PipelineError):
    kind = "empty_response"


class EmptyStream(PipelineError):
    kind = "empty_stream"


def annotate_status(message: str, status_code: int, service: str) -> str:
    """Append the auth / rate-limit hints used for LLM and TTS providers."""
    if status_code == 401:
        message += f" Check {service} API Key."
    elif status_code == 429:
        message += " Rate limit hit."
    return message


async def pipeline_error_handler(request: Request, exc: PipelineError) -> JSONResponse:
    logger.warning(
        "stage_failed",
        path=request.url.path,
        kind=exc.kind,
        status=exc.status_code,
        error=exc.message,
    )
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Malformed requests are 400 with the first problem spelled out, never forwarded."""
    errors = exc.errors()
    if not errors:
        message = "Invalid request body."
    elif errors[0].get("type") == "json_invalid":
        message = "Invalid JSON in request body."
    else:
        first = errors[0]
        loc = [str(p) for p in first.get("loc", ()) if p not in ("body", "query")]
        field = ".".join(loc) or "body"
        message = f"Missing or invalid '{field}' in request: {first.get('msg', 'invalid')}"
    return await pipeline_error_handler(request, ValidationError(message))


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled_error", path=request.url.path, error=str(exc))
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Internal server error."},
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(PipelineError, pipeline_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
