"""Bearer-token verification and the admin gate, as FastAPI dependencies."""

from __future__ import annotations

from typing import Annotated, Protocol

import structlog
from fastapi import Depends, Request

from backoffice_service.auth.identity import IdentityAdmin, RemoteTokenVerifier
from backoffice_service.auth.jwt import JwtTokenVerifier
from backoffice_service.auth.models import ADMIN_ROLE, AuthContext, Identity
from backoffice_service.errors import AuthenticationError, AuthorizationError
from backoffice_service.settings import settings

log = structlog.get_logger(__name__)

_BEARER = "Bearer "


class TokenVerifier(Protocol):
    async def verify(self, token: str) -> Identity: ...


def extract_bearer_token(authorization: str | None) -> str:
    """Return the token from an ``Authorization: Bearer <token>`` header."""
    if not authorization or not authorization.startswith(_BEARER):
        raise AuthenticationError("Unauthorized: missing token", reason="missing_token")
    token = authorization[len(_BEARER):].strip()
    if not token:
        raise AuthenticationError("Unauthorized: missing token", reason="missing_token")
    return token


async def verify_identity(
    authorization: str | None, verifier: TokenVerifier
) -> tuple[str, Identity]:
    """Exchange the header's bearer token for a verified identity."""
    try:
        token = extract_bearer_token(authorization)
        return token, await verifier.verify(token)
    except AuthenticationError as exc:
        log.info("auth_rejected", reason=exc.reason)
        raise


async def authenticate_admin(authorization: str | None, verifier: TokenVerifier) -> AuthContext:
    """Verify the caller and require the admin role claim."""
    token, user = await verify_identity(authorization, verifier)
    if user.role != ADMIN_ROLE:
        log.info("auth_rejected", reason="forbidden", user_id=user.id)
        raise AuthorizationError("Forbidden: admin only")
    return AuthContext(token=token, user=user, is_admin=True)


def get_token_verifier() -> TokenVerifier:
    if settings.identity_jwt_secret:
        return JwtTokenVerifier(settings.identity_jwt_secret, audience=settings.identity_jwt_audience)
    return RemoteTokenVerifier.from_settings(settings)


def get_identity_admin() -> IdentityAdmin:
    return IdentityAdmin.from_settings(settings)


TokenVerifierDep = Annotated[TokenVerifier, Depends(get_token_verifier)]
IdentityAdminDep = Annotated[IdentityAdmin, Depends(get_identity_admin)]


async def get_admin_context(request: Request, verifier: TokenVerifierDep) -> AuthContext:
    """Resolve the admin gate for the current request."""
    ctx = await authenticate_admin(request.headers.get("Authorization"), verifier)
    structlog.contextvars.bind_contextvars(user_id=ctx.user.id)
    return ctx


AdminContextDep = Annotated[AuthContext, Depends(get_admin_context)]
