"""HTTP client for the identity provider (GoTrue-compatible ``/auth/v1`` API).

``RemoteTokenVerifier`` exchanges a bearer token for the user it belongs to.
``IdentityAdmin`` uses the service key for account provisioning. Both open a
short-lived ``httpx.AsyncClient`` per call; nothing is cached between
requests.
"""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from backoffice_service.auth.models import Identity
from backoffice_service.errors import (
    AuthenticationError,
    ConfigurationError,
    ConflictError,
    InternalError,
    NotFoundError,
    ValidationError,
)
from backoffice_service.settings import Settings

log = structlog.get_logger(__name__)


def _provider_message(resp: httpx.Response, default: str) -> str:
    try:
        body = resp.json()
    except ValueError:
        return default
    if isinstance(body, dict):
        for key in ("msg", "message", "error_description", "error"):
            value = body.get(key)
            if isinstance(value, str) and value:
                return value
    return default


def _identity_from_user(body: Any) -> Identity:
    user = body.get("user", body) if isinstance(body, dict) else None
    if not isinstance(user, dict) or not user.get("id"):
        raise InternalError("Identity provider returned an unexpected payload")
    return Identity.from_claims(user["id"], user.get("email"), user.get("user_metadata"))


class _IdentityClient:
    def __init__(
        self,
        base_url: str | None,
        api_key: str | None,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/") if base_url else None
        self._api_key = api_key
        self._timeout = timeout
        self._transport = transport

    def _require_config(self) -> tuple[str, str]:
        if not self._base_url or not self._api_key:
            raise ConfigurationError(
                "Identity provider not configured: set IDENTITY_URL and its API keys"
            )
        return self._base_url, self._api_key

    async def _request(
        self,
        method: str,
        path: str,
        *,
        bearer: str | None = None,
        json: dict[str, Any] | None = None,
    ) -> httpx.Response:
        base_url, api_key = self._require_config()
        headers = {
            "apikey": api_key,
            "Authorization": f"Bearer {bearer or api_key}",
        }
        try:
            async with httpx.AsyncClient(
                base_url=base_url, timeout=self._timeout, transport=self._transport
            ) as client:
                resp = await client.request(method, f"/auth/v1{path}", headers=headers, json=json)
        except httpx.HTTPError as exc:
            log.error("identity_provider_unreachable", path=path, error=str(exc))
            raise InternalError("Identity provider unavailable") from exc

        if resp.status_code >= 500:
            log.error("identity_provider_error", path=path, status=resp.status_code)
            raise InternalError("Identity provider unavailable")
        return resp


class RemoteTokenVerifier(_IdentityClient):
    """Verify a bearer token by asking the provider who it belongs to."""

    @classmethod
    def from_settings(cls, settings: Settings) -> RemoteTokenVerifier:
        return cls(
            settings.identity_url,
            settings.identity_anon_key,
            timeout=settings.identity_timeout_seconds,
        )

    async def verify(self, token: str) -> Identity:
        resp = await self._request("GET", "/user", bearer=token)
        if resp.status_code != 200:
            raise AuthenticationError("Unauthorized: invalid token", reason="invalid_token")
        return _identity_from_user(resp.json())


class IdentityAdmin(_IdentityClient):
    """Administrative account operations, authenticated with the service key."""

    @classmethod
    def from_settings(cls, settings: Settings) -> IdentityAdmin:
        return cls(
            settings.identity_url,
            settings.identity_service_key,
            timeout=settings.identity_timeout_seconds,
        )

    def _raise_for_status(self, resp: httpx.Response, action: str) -> None:
        if resp.is_success:
            return
        if resp.status_code in (401, 403):
            log.error("identity_admin_rejected", action=action, status=resp.status_code)
            raise InternalError("Identity provider rejected the service credentials")
        if resp.status_code == 404:
            raise NotFoundError("Account not found")
        message = _provider_message(resp, f"Identity provider refused to {action}")
        if resp.status_code == 409:
            raise ConflictError(message)
        raise ValidationError(message)

    async def create_user(self, email: str, role: str) -> Identity:
        resp = await self._request(
            "POST",
            "/admin/users",
            json={"email": email, "email_confirm": False, "user_metadata": {"role": role}},
        )
        self._raise_for_status(resp, "create the user")
        identity = _identity_from_user(resp.json())
        log.info("identity_created", user_id=identity.id, role=role)
        return identity

    async def invite_user(self, email: str, role: str) -> Identity:
        resp = await self._request("POST", "/invite", json={"email": email, "data": {"role": role}})
        self._raise_for_status(resp, "invite the user")
        identity = _identity_from_user(resp.json())
        log.info("identity_invited", user_id=identity.id, role=role)
        return identity

    async def update_role(self, user_id: str, role: str) -> Identity:
        resp = await self._request(
            "PUT", f"/admin/users/{user_id}", json={"user_metadata": {"role": role}}
        )
        self._raise_for_status(resp, "update the role")
        log.info("identity_role_updated", user_id=user_id, role=role)
        return _identity_from_user(resp.json())

    async def delete_user(self, user_id: str) -> None:
        resp = await self._request("DELETE", f"/admin/users/{user_id}")
        self._raise_for_status(resp, "delete the user")
        log.info("identity_deleted", user_id=user_id)

    async def generate_recovery_link(self, email: str) -> str | None:
        resp = await self._request(
            "POST", "/admin/generate_link", json={"type": "recovery", "email": email}
        )
        self._raise_for_status(resp, "generate a recovery link")
        body = resp.json()
        if not isinstance(body, dict):
            return None
        properties = body.get("properties") or {}
        return body.get("action_link") or properties.get("action_link")
