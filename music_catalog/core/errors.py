"""
API errors and the handlers that turn them into response envelopes.
"""

import logging
from typing import Any, Iterable, List, Mapping, Optional, Union

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from music_catalog.schemas.envelope import error_envelope

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """Base error carrying the HTTP status it maps to."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Internal Server Error"

    def __init__(self, message: Optional[str] = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(ApiError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Validation failed"

    def __init__(self, errors: Union[List[str], str]) -> None:
        if isinstance(errors, str):
            errors = [errors]
        self.errors = list(errors)
        super().__init__(", ".join(self.errors))


class NotFoundError(ApiError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Resource not found"


class PreconditionFailedError(ApiError):
    status_code = status.HTTP_412_PRECONDITION_FAILED
    default_message = "Precondition failed: version tag does not match"


class StorageError(ApiError):
    """Wraps a fault reported by the database engine."""

    default_message = "Database operation failed"


def error_messages(errors: Iterable[Mapping[str, Any]]) -> List[str]:
    """
    Flatten pydantic error dicts into client-facing messages.

    Messages raised by our own validators are used as they are; anything
    pydantic reports itself is prefixed with the offending location.
    """
    messages: List[str] = []
    for err in errors:
        ctx = err.get("ctx") or {}
        if err.get("type") == "value_error" and "error" in ctx:
            message = str(ctx["error"])
        else:
            loc = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
            message = f"{loc}: {err.get('msg')}" if loc else str(err.get("msg"))
        if message not in messages:
            messages.append(message)
    return messages


def install_error_handlers(app: FastAPI) -> None:
    """Register the envelope-producing exception handlers on ``app``."""

    @app.exception_handler(ApiError)
    async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
        if isinstance(exc, StorageError):
            logger.error("Storage error on %s %s: %s", request.method, request.url.path, exc.message)
        else:
            logger.debug("%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc.message)
        return JSONResponse(
            status_code=exc.status_code,
            content=error_envelope(request, exc.message),
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=error_envelope(request, ", ".join(error_messages(exc.errors())) or "Invalid request"),
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        message = exc.detail if isinstance(exc.detail, str) else "Request failed"
        if exc.status_code == status.HTTP_404_NOT_FOUND:
            message = NotFoundError.default_message
        return JSONResponse(
            status_code=exc.status_code,
            content=error_envelope(request, message),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=error_envelope(request, "Internal Server Error"),
        )
