"""Account endpoints: identity-provider users paired with profile rows."""

from __future__ import annotations

from uuid import UUID

import structlog
from fastapi import APIRouter, Response

from backoffice_service.auth.deps import AdminContextDep, IdentityAdminDep
from backoffice_service.db.deps import AccountsRepoDep
from backoffice_service.errors import ApiError, NotFoundError
from backoffice_service.rest.deps import JsonBody, QueryParams
from backoffice_service.rest.schemas import (
    AccountCreate,
    AccountCreatedResponse,
    AccountListResponse,
    AccountResponse,
    AccountSchema,
    AccountUpdate,
    SearchQuery,
)
from backoffice_service.validation import (
    parse_account_id,
    require_changes,
    validate_input,
)

router = APIRouter()
log = structlog.get_logger(__name__)


@router.get("/accounts/list", response_model=AccountListResponse)
async def list_accounts(
    ctx: AdminContextDep,
    query: QueryParams,
    repo: AccountsRepoDep,
) -> AccountListResponse:
    params = validate_input(SearchQuery, query)
    rows = await repo.list(q=params.q)
    return AccountListResponse(accounts=[AccountSchema.model_validate(r) for r in rows])


@router.post("/accounts/create", response_model=AccountCreatedResponse, status_code=201)
async def create_account(
    ctx: AdminContextDep,
    body: JsonBody,
    repo: AccountsRepoDep,
    identity_admin: IdentityAdminDep,
) -> AccountCreatedResponse:
    """Create the identity, then its profile row.

    If the profile cannot be stored the identity is deleted again so no
    orphan login is left behind. Uninvited accounts get a recovery link
    for setting the first password.
    """
    data = validate_input(AccountCreate, body)
    if data.send_invite:
        identity = await identity_admin.invite_user(data.email, data.role)
    else:
        identity = await identity_admin.create_user(data.email, data.role)

    try:
        row = await repo.create(
            id=UUID(identity.id),
            email=data.email,
            full_name=data.full_name,
            username=data.username,
            role=data.role,
        )
        await repo.commit()
    except Exception:
        await repo.rollback()
        log.warning("account_provisioning_rolled_back", user_id=identity.id)
        try:
            await identity_admin.delete_user(identity.id)
        except ApiError as exc:
            log.error("account_compensation_failed", user_id=identity.id, error=exc.message)
        raise

    recovery_link = None
    if not data.send_invite:
        try:
            recovery_link = await identity_admin.generate_recovery_link(data.email)
        except ApiError as exc:
            log.warning("recovery_link_failed", user_id=identity.id, error=exc.message)

    log.info("account_created", user_id=identity.id, role=data.role, invited=data.send_invite)
    return AccountCreatedResponse(
        account=AccountSchema.model_validate(row), recovery_link=recovery_link
    )


@router.get("/accounts/{account_id}/get", response_model=AccountResponse)
async def get_account(
    ctx: AdminContextDep,
    account_id: str,
    repo: AccountsRepoDep,
) -> AccountResponse:
    row = await repo.get(parse_account_id(account_id))
    if row is None:
        raise NotFoundError("Account not found")
    return AccountResponse(account=AccountSchema.model_validate(row))


@router.patch("/accounts/{account_id}/update", response_model=AccountResponse)
async def update_account(
    ctx: AdminContextDep,
    account_id: str,
    body: JsonBody,
    repo: AccountsRepoDep,
    identity_admin: IdentityAdminDep,
) -> AccountResponse:
    """Update the profile and keep the provider's role claim in step.

    The profile change is committed last. If that commit fails after the
    role was already pushed to the provider, the previous role is pushed
    back.
    """
    pk = parse_account_id(account_id)
    patch = require_changes(validate_input(AccountUpdate, body))
    current = await repo.get(pk)
    if current is None:
        raise NotFoundError("Account not found")
    previous_role = current.role

    role_synced = False
    try:
        row = await repo.update(pk, patch)
        if row is None:
            raise NotFoundError("Account not found")
        if "role" in patch:
            await identity_admin.update_role(str(pk), patch["role"])
            role_synced = True
        await repo.commit()
    except Exception:
        await repo.rollback()
        if role_synced:
            try:
                await identity_admin.update_role(str(pk), previous_role)
            except ApiError as exc:
                log.error("account_role_restore_failed", user_id=str(pk), error=exc.message)
        raise
    return AccountResponse(account=AccountSchema.model_validate(row))


@router.delete("/accounts/{account_id}/delete", status_code=204)
async def delete_account(
    ctx: AdminContextDep,
    account_id: str,
    repo: AccountsRepoDep,
    identity_admin: IdentityAdminDep,
) -> Response:
    """Remove the profile row and the identity behind it.

    The row is deleted (flushed, not committed) before the provider call and
    committed after it, so a provider failure leaves both in place. An
    identity already gone at the provider does not block removing a
    leftover profile; 404 only when neither exists.
    """
    pk = parse_account_id(account_id)
    try:
        had_profile = await repo.delete(pk)
        try:
            await identity_admin.delete_user(str(pk))
        except NotFoundError:
            if not had_profile:
                raise
            log.warning("account_identity_already_gone", user_id=str(pk))
        await repo.commit()
    except Exception:
        await repo.rollback()
        raise
    log.info("account_deleted", user_id=str(pk))
    return Response(status_code=204)
