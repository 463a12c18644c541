"""Customer endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Response

from backoffice_service.auth.deps import AdminContextDep
from backoffice_service.db.deps import CustomersRepoDep
from backoffice_service.errors import NotFoundError
from backoffice_service.rest.deps import JsonBody, QueryParams
from backoffice_service.rest.schemas import (
    CustomerCreate,
    CustomerListResponse,
    CustomerResponse,
    CustomerSchema,
    CustomerUpdate,
    SearchQuery,
)
from backoffice_service.validation import parse_resource_id, require_changes, validate_input

router = APIRouter()


@router.get("/customers/list", response_model=CustomerListResponse)
async def list_customers(
    ctx: AdminContextDep,
    query: QueryParams,
    repo: CustomersRepoDep,
) -> CustomerListResponse:
    params = validate_input(SearchQuery, query)
    rows = await repo.list(q=params.q)
    return CustomerListResponse(customers=[CustomerSchema.model_validate(r) for r in rows])


@router.post("/customers/create", response_model=CustomerResponse, status_code=201)
async def create_customer(
    ctx: AdminContextDep,
    body: JsonBody,
    repo: CustomersRepoDep,
) -> CustomerResponse:
    data = validate_input(CustomerCreate, body)
    row = await repo.create(**data.model_dump(), created_by=ctx.user_uuid)
    return CustomerResponse(customer=CustomerSchema.model_validate(row))


@router.get("/customers/{customer_id}/get", response_model=CustomerResponse)
async def get_customer(
    ctx: AdminContextDep,
    customer_id: str,
    repo: CustomersRepoDep,
) -> CustomerResponse:
    row = await repo.get(parse_resource_id(customer_id, "customer"))
    if row is None:
        raise NotFoundError("Customer not found")
    return CustomerResponse(customer=CustomerSchema.model_validate(row))


@router.patch("/customers/{customer_id}/update", response_model=CustomerResponse)
async def update_customer(
    ctx: AdminContextDep,
    customer_id: str,
    body: JsonBody,
    repo: CustomersRepoDep,
) -> CustomerResponse:
    pk = parse_resource_id(customer_id, "customer")
    patch = require_changes(validate_input(CustomerUpdate, body))
    row = await repo.update(pk, patch)
    if row is None:
        raise NotFoundError("Customer not found")
    return CustomerResponse(customer=CustomerSchema.model_validate(row))


@router.delete("/customers/{customer_id}/delete", status_code=204)
async def delete_customer(
    ctx: AdminContextDep,
    customer_id: str,
    repo: CustomersRepoDep,
) -> Response:
    if not await repo.delete(parse_resource_id(customer_id, "customer")):
        raise NotFoundError("Customer not found")
    return Response(status_code=204)
