"""Local verification of provider-issued JWT access tokens."""

from __future__ import annotations

import jwt

from backoffice_service.auth.models import Identity
from backoffice_service.errors import AuthenticationError


class JwtTokenVerifier:
    """Verify HS256 access tokens with the provider's shared secret.

    Used instead of the remote exchange when ``IDENTITY_JWT_SECRET`` is set.
    The signature and expiry are checked on every call.
    """

    def __init__(
        self, secret: str, audience: str = "authenticated", algorithm: str = "HS256"
    ) -> None:
        self._secret = secret
        self._audience = audience
        self._algorithm = algorithm

    async def verify(self, token: str) -> Identity:
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                audience=self._audience,
            )
        except jwt.ExpiredSignatureError as exc:
            raise AuthenticationError("Unauthorized: token expired") from exc
        except jwt.PyJWTError as exc:
            raise AuthenticationError("Unauthorized: invalid token") from exc

        sub = payload.get("sub")
        if not sub:
            raise AuthenticationError("Unauthorized: malformed token payload")
        return Identity.from_claims(sub, payload.get("email"), payload.get("user_metadata"))
