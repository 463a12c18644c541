"""Employee directory: the people assignable to projects and tasks."""

from __future__ import annotations

from fastapi import APIRouter

from backoffice_service.auth.deps import AdminContextDep
from backoffice_service.db.deps import EmployeesRepoDep
from backoffice_service.rest.deps import QueryParams
from backoffice_service.rest.schemas import EmployeeListResponse, EmployeeSchema, SearchQuery
from backoffice_service.validation import validate_input

router = APIRouter()


@router.get("/members/list", response_model=EmployeeListResponse)
async def list_employees(
    ctx: AdminContextDep,
    query: QueryParams,
    repo: EmployeesRepoDep,
) -> EmployeeListResponse:
    params = validate_input(SearchQuery, query)
    rows = await repo.list(q=params.q)
    return EmployeeListResponse(members=[EmployeeSchema.model_validate(r) for r in rows])
