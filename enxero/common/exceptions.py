"""Application error taxonomy and the JSON error handlers.

Every failure a service raises is an :class:`AppException` carrying an
:class:`ErrorKind`. The kind alone decides the HTTP status, through
``STATUS_BY_KIND``; routers never translate errors themselves.

Error body::

    {"status": "error", "message": "...", "details": {...}}
"""

from __future__ import annotations

import enum
import logging
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


# ── Error kinds ─────────────────────────────────────────────────────

class ErrorKind(str, enum.Enum):
    BAD_REQUEST = "BAD_REQUEST"
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    INTERNAL = "INTERNAL"


STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.BAD_REQUEST: 400,
    ErrorKind.UNAUTHORIZED: 401,
    ErrorKind.FORBIDDEN: 403,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.CONFLICT: 409,
    ErrorKind.INTERNAL: 500,
}


# ── Exception hierarchy ─────────────────────────────────────────────

class AppException(Exception):
    """Base for all classified application errors."""

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        details: Optional[Any] = None,
    ) -> None:
        self.kind = kind
        self.message = message
        self.details = details
        super().__init__(message)

    @property
    def status_code(self) -> int:
        return STATUS_BY_KIND[self.kind]


class BadRequestException(AppException):
    """400 — malformed input or a violated precondition."""

    def __init__(self, message: str = "Bad request", details: Optional[Any] = None) -> None:
        super().__init__(ErrorKind.BAD_REQUEST, message, details)


class UnauthorizedException(AppException):
    """401 — missing or invalid credential."""

    def __init__(self, message: str = "Authentication required") -> None:
        super().__init__(ErrorKind.UNAUTHORIZED, message)


class ForbiddenException(AppException):
    """403 — insufficient permissions."""

    def __init__(self, message: str = "Insufficient permissions") -> None:
        super().__init__(ErrorKind.FORBIDDEN, message)


class NotFoundException(AppException):
    """404 — entity absent, or outside the caller's tenant."""

    def __init__(
        self,
        entity_type: str,
        entity_id: Any = None,
        *,
        message: Optional[str] = None,
    ) -> None:
        message = message or f"{entity_type} not found"
        details = {"id": str(entity_id)} if entity_id is not None else None
        super().__init__(ErrorKind.NOT_FOUND, message, details)


class ConflictError(AppException):
    """409 — unique-constraint / duplicate."""

    def __init__(self, message: str = "Resource already exists", field: Optional[str] = None) -> None:
        details = {"field": field} if field else None
        super().__init__(ErrorKind.CONFLICT, message, details)


class InternalServerException(AppException):
    """500 — unclassified failure; the message is safe to show to clients."""

    def __init__(self, message: str = "Internal server error") -> None:
        super().__init__(ErrorKind.INTERNAL, message)


# ── Body builder ────────────────────────────────────────────────────

def _error_body(message: str, details: Any = None) -> dict[str, Any]:
    body: dict[str, Any] = {"status": "error", "message": message}
    if details:
        body["details"] = details
    return body


# ── FastAPI handlers ────────────────────────────────────────────────

async def _handle_app_exception(request: Request, exc: AppException) -> JSONResponse:
    if exc.kind is ErrorKind.INTERNAL:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(exc.message, exc.details),
    )


async def _handle_validation_error(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    field_errors: dict[str, list[str]] = {}
    for err in exc.errors():
        loc = err.get("loc", ())
        name = (
            ".".join(str(p) for p in loc[1:])
            if len(loc) > 1
            else str(loc[0]) if loc else "unknown"
        )
        field_errors.setdefault(name, []).append(err.get("msg", "Invalid value"))

    return JSONResponse(
        status_code=STATUS_BY_KIND[ErrorKind.BAD_REQUEST],
        content=_error_body("Validation failed", field_errors),
    )


async def _handle_http_exception(
    request: Request,
    exc: StarletteHTTPException,
) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


async def _handle_rate_limit(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    return JSONResponse(
        status_code=429,
        content=_error_body(f"Rate limit exceeded: {exc.detail}"),
    )


async def _handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=STATUS_BY_KIND[ErrorKind.INTERNAL],
        content=_error_body("Internal server error"),
    )


# ── Registration helper (called from main.py) ──────────────────────

def register_exception_handlers(app: FastAPI) -> None:
    """Attach all custom exception handlers to the FastAPI app."""
    app.add_exception_handler(AppException, _handle_app_exception)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _handle_validation_error)  # type: ignore[arg-type]
    app.add_exception_handler(StarletteHTTPException, _handle_http_exception)  # type: ignore[arg-type]
    app.add_exception_handler(RateLimitExceeded, _handle_rate_limit)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, _handle_unexpected)
