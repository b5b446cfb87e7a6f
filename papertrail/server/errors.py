"""API exceptions and their JSON translation."""

import logging
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from papertrail.config import Settings

logger = logging.getLogger(__name__)


class APIError(Exception):
    """Base class for errors that map to a specific HTTP status."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(APIError):
    status_code = 400


class NotFoundError(APIError):
    status_code = 404


class PayloadTooLargeError(APIError):
    status_code = 413


class UpstreamError(APIError):
    """An external service (ArXiv) failed."""

    status_code = 500


def error_response(status_code: int, message: str, **extra) -> JSONResponse:
    return JSONResponse({"success": False, "error": message, **extra}, status_code=status_code)


def _first_validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    return f"{location}: {first.get('msg')}" if location else str(first.get("msg"))


def register_exception_handlers(app: FastAPI, settings: Settings) -> None:
    """Install handlers that turn every error into ``{"success": false, ...}``."""

    @app.exception_handler(APIError)
    async def handle_api_error(request: Request, exc: APIError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return error_response(exc.status_code, exc.message)

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        return error_response(400, _first_validation_message(exc))

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        if exc.status_code == 404:
            return error_response(404, "API endpoint not found")
        return error_response(exc.status_code, str(exc.detail))

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        timestamp = datetime.now(timezone.utc).isoformat()
        if settings.is_production:
            return error_response(500, "Internal server error", timestamp=timestamp)
        return error_response(500, str(exc), type=type(exc).__name__, timestamp=timestamp)
