"""Milestone endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Response

from backoffice_service.auth.deps import AdminContextDep
from backoffice_service.db.deps import MilestonesRepoDep, ProjectsRepoDep
from backoffice_service.errors import NotFoundError, ValidationError
from backoffice_service.rest.deps import JsonBody, QueryParams
from backoffice_service.rest.schemas import (
    MilestoneCreate,
    MilestoneListResponse,
    MilestoneResponse,
    MilestoneSchema,
    MilestoneUpdate,
    ProjectScopedQuery,
)
from backoffice_service.validation import (
    ensure_date_order,
    parse_resource_id,
    require_changes,
    validate_input,
)

router = APIRouter()

_DATE_ORDER = "Start date cannot be after due date"


@router.get("/milestones/list", response_model=MilestoneListResponse)
async def list_milestones(
    ctx: AdminContextDep,
    query: QueryParams,
    repo: MilestonesRepoDep,
) -> MilestoneListResponse:
    params = validate_input(ProjectScopedQuery, query)
    rows = await repo.list_by_project(params.project_id)
    return MilestoneListResponse(milestones=[MilestoneSchema.model_validate(r) for r in rows])


@router.post("/milestones/create", response_model=MilestoneResponse, status_code=201)
async def create_milestone(
    ctx: AdminContextDep,
    body: JsonBody,
    repo: MilestonesRepoDep,
    projects: ProjectsRepoDep,
) -> MilestoneResponse:
    data = validate_input(MilestoneCreate, body)
    ensure_date_order(data.start_date, data.due_date, _DATE_ORDER)
    if await projects.get(data.project_id) is None:
        raise ValidationError("Project not found")
    row = await repo.create(**data.model_dump())
    return MilestoneResponse(milestone=MilestoneSchema.model_validate(row))


@router.patch("/milestones/{milestone_id}/update", response_model=MilestoneResponse)
async def update_milestone(
    ctx: AdminContextDep,
    milestone_id: str,
    body: JsonBody,
    repo: MilestonesRepoDep,
) -> MilestoneResponse:
    pk = parse_resource_id(milestone_id, "milestone")
    patch = require_changes(validate_input(MilestoneUpdate, body))
    current = await repo.get(pk)
    if current is None:
        raise NotFoundError("Milestone not found")
    ensure_date_order(
        patch.get("start_date", current.start_date),
        patch.get("due_date", current.due_date),
        _DATE_ORDER,
    )
    row = await repo.update(pk, patch)
    if row is None:
        raise NotFoundError("Milestone not found")
    return MilestoneResponse(milestone=MilestoneSchema.model_validate(row))


@router.delete("/milestones/{milestone_id}/delete", status_code=204)
async def delete_milestone(
    ctx: AdminContextDep,
    milestone_id: str,
    repo: MilestonesRepoDep,
) -> Response:
    if not await repo.delete(parse_resource_id(milestone_id, "milestone")):
        raise NotFoundError("Milestone not found")
    return Response(status_code=204)
