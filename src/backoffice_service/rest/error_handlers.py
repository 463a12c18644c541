"""Exception handlers turning every failure into one ``{"error": ...}`` body."""

from __future__ import annotations

import httpx
import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from backoffice_service.errors import ApiError, ErrorKind
from backoffice_service.validation import format_errors

log = structlog.get_logger(__name__)

_UNIQUE_VIOLATION = "23505"
_FOREIGN_KEY_VIOLATION = "23503"


def _error(status: int, message: str, headers: dict[str, str] | None = None) -> JSONResponse:
    return JSONResponse(status_code=status, content={"error": message}, headers=headers)


def classify_integrity_error(exc: IntegrityError) -> tuple[ErrorKind, str]:
    """Map a constraint violation to a kind and a message safe to show callers."""
    orig = exc.orig
    code = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    detail = str(orig).lower()
    if code == _UNIQUE_VIOLATION or "unique" in detail or "duplicate key" in detail:
        return ErrorKind.CONFLICT, "Resource already exists"
    if code == _FOREIGN_KEY_VIOLATION or "foreign key" in detail:
        return ErrorKind.VALIDATION, "Referenced resource does not exist"
    return ErrorKind.VALIDATION, "Request violates a data constraint"


async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    if exc.status >= 500:
        log.error("request_failed", path=request.url.path, kind=exc.kind.value, error=exc.message)
    return _error(exc.status, exc.message)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return _error(exc.status_code, str(exc.detail), headers=getattr(exc, "headers", None))


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return _error(ErrorKind.VALIDATION.status, format_errors(list(exc.errors())))


async def integrity_error_handler(request: Request, exc: IntegrityError) -> JSONResponse:
    kind, message = classify_integrity_error(exc)
    log.warning("constraint_violation", path=request.url.path, error=str(exc.orig))
    return _error(kind.status, message)


async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    log.error("database_error", path=request.url.path, error=str(exc))
    return _error(500, "Database error")


async def upstream_error_handler(request: Request, exc: httpx.HTTPError) -> JSONResponse:
    log.error("upstream_error", path=request.url.path, error=str(exc))
    return _error(500, "Upstream service error")


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    log.exception("unhandled_error", path=request.url.path)
    return _error(500, "Internal server error")


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(IntegrityError, integrity_error_handler)
    app.add_exception_handler(SQLAlchemyError, database_error_handler)
    app.add_exception_handler(httpx.HTTPError, upstream_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
