"""Error taxonomy shared by every request handler.

Each failure carries its ``ErrorKind`` from the point where it is raised; the
HTTP layer maps the kind to a status code and renders ``{"error": message}``.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    AUTHENTICATION = "authentication"
    AUTHORIZATION = "authorization"
    NOT_FOUND = "not_found"
    METHOD_NOT_ALLOWED = "method_not_allowed"
    CONFLICT = "conflict"
    INTERNAL = "internal"

    @property
    def status(self) -> int:
        return _STATUS[self]


_STATUS = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.AUTHENTICATION: 401,
    ErrorKind.AUTHORIZATION: 403,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.METHOD_NOT_ALLOWED: 405,
    ErrorKind.CONFLICT: 409,
    ErrorKind.INTERNAL: 500,
}


class ApiError(Exception):
    """Base class for failures that end a request with a JSON error body."""

    kind: ErrorKind = ErrorKind.INTERNAL

    def __init__(self, message: str, kind: ErrorKind | None = None) -> None:
        super().__init__(message)
        self.message = message
        if kind is not None:
            self.kind = kind

    @property
    def status(self) -> int:
        return self.kind.status

    def to_response(self) -> dict[str, str]:
        return {"error": self.message}


class ValidationError(ApiError):
    kind = ErrorKind.VALIDATION


class AuthenticationError(ApiError):
    """Missing or rejected bearer token.

    ``reason`` is ``"missing_token"`` or ``"invalid_token"``; both map to 401
    but stay distinguishable in logs.
    """

    kind = ErrorKind.AUTHENTICATION

    def __init__(self, message: str, reason: str = "invalid_token") -> None:
        super().__init__(message)
        self.reason = reason


class AuthorizationError(ApiError):
    kind = ErrorKind.AUTHORIZATION


class NotFoundError(ApiError):
    kind = ErrorKind.NOT_FOUND


class ConflictError(ApiError):
    kind = ErrorKind.CONFLICT


class InternalError(ApiError):
    kind = ErrorKind.INTERNAL


class ConfigurationError(InternalError):
    """Required environment configuration is absent."""
