"""Row-level-security scoping applied to each request's session."""

from __future__ import annotations

import json
from unittest.mock import AsyncMock

import pytest
from conftest import ADMIN_ID

from backoffice_service.auth.models import AuthContext, Identity
from backoffice_service.db.deps import get_scoped_session
from backoffice_service.settings import settings


def _ctx() -> AuthContext:
    user = Identity.from_claims(ADMIN_ID, "admin@example.com", {"role": "admin"})
    return AuthContext(token="admin-token", user=user, is_admin=True)


@pytest.mark.asyncio
async def test_claims_are_bound_parameters(monkeypatch):
    monkeypatch.setattr(settings, "rls_role", "authenticated")
    session = AsyncMock()

    assert await get_scoped_session(_ctx(), session) is session

    statement, params = session.execute.await_args_list[0].args
    assert "set_config('request.jwt.claims', :claims, true)" in str(statement)
    assert "set_config('request.jwt.claim.sub', :sub, true)" in str(statement)
    assert ADMIN_ID not in str(statement)
    assert params["sub"] == ADMIN_ID
    claims = json.loads(params["claims"])
    assert claims["sub"] == ADMIN_ID
    assert claims["email"] == "admin@example.com"
    assert claims["role"] == "authenticated"
    assert claims["user_metadata"] == {"role": "admin"}


@pytest.mark.asyncio
async def test_switches_to_configured_role(monkeypatch):
    monkeypatch.setattr(settings, "rls_role", "backoffice_admin")
    session = AsyncMock()

    await get_scoped_session(_ctx(), session)

    assert session.execute.await_count == 2
    role_stmt = session.execute.await_args_list[1].args[0]
    assert str(role_stmt) == "SET LOCAL ROLE backoffice_admin"
    claims = json.loads(session.execute.await_args_list[0].args[1]["claims"])
    assert claims["role"] == "backoffice_admin"


@pytest.mark.asyncio
async def test_no_role_switch_when_role_unset(monkeypatch):
    monkeypatch.setattr(settings, "rls_role", "")
    session = AsyncMock()

    await get_scoped_session(_ctx(), session)

    assert session.execute.await_count == 1
    claims = json.loads(session.execute.await_args_list[0].args[1]["claims"])
    assert claims["role"] == "authenticated"
