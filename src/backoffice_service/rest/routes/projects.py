"""Project endpoints, including member assignment."""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Response

from backoffice_service.auth.deps import AdminContextDep
from backoffice_service.db.deps import EmployeesRepoDep, ProjectMembersRepoDep, ProjectsRepoDep
from backoffice_service.errors import ConflictError, NotFoundError, ValidationError
from backoffice_service.rest.deps import JsonBody, QueryParams
from backoffice_service.rest.schemas import (
    MemberAction,
    ProjectCreate,
    ProjectListResponse,
    ProjectMemberListResponse,
    ProjectMemberResponse,
    ProjectMemberSchema,
    ProjectResponse,
    ProjectSchema,
    ProjectUpdate,
    SearchQuery,
)
from backoffice_service.validation import (
    ensure_date_order,
    parse_resource_id,
    require_changes,
    validate_input,
)

router = APIRouter()
log = structlog.get_logger(__name__)


@router.get("/projects/list", response_model=ProjectListResponse)
async def list_projects(
    ctx: AdminContextDep,
    query: QueryParams,
    repo: ProjectsRepoDep,
) -> ProjectListResponse:
    params = validate_input(SearchQuery, query)
    rows = await repo.list(q=params.q)
    return ProjectListResponse(projects=[ProjectSchema.model_validate(r) for r in rows])


@router.post("/projects/create", response_model=ProjectResponse, status_code=201)
async def create_project(
    ctx: AdminContextDep,
    body: JsonBody,
    repo: ProjectsRepoDep,
) -> ProjectResponse:
    data = validate_input(ProjectCreate, body)
    ensure_date_order(data.start_date, data.end_date)
    row = await repo.create(**data.model_dump(), created_by=ctx.user_uuid)
    return ProjectResponse(project=ProjectSchema.model_validate(row))


@router.get("/projects/{project_id}/get", response_model=ProjectResponse)
async def get_project(
    ctx: AdminContextDep,
    project_id: str,
    repo: ProjectsRepoDep,
) -> ProjectResponse:
    row = await repo.get(parse_resource_id(project_id, "project"))
    if row is None:
        raise NotFoundError("Project not found")
    return ProjectResponse(project=ProjectSchema.model_validate(row))


@router.patch("/projects/{project_id}/update", response_model=ProjectResponse)
async def update_project(
    ctx: AdminContextDep,
    project_id: str,
    body: JsonBody,
    repo: ProjectsRepoDep,
) -> ProjectResponse:
    pk = parse_resource_id(project_id, "project")
    patch = require_changes(validate_input(ProjectUpdate, body))
    current = await repo.get(pk)
    if current is None:
        raise NotFoundError("Project not found")
    # A one-sided date change is checked against the stored other side.
    ensure_date_order(
        patch.get("start_date", current.start_date),
        patch.get("end_date", current.end_date),
    )
    row = await repo.update(pk, patch)
    if row is None:
        raise NotFoundError("Project not found")
    return ProjectResponse(project=ProjectSchema.model_validate(row))


@router.delete("/projects/{project_id}/delete", status_code=204)
async def delete_project(
    ctx: AdminContextDep,
    project_id: str,
    repo: ProjectsRepoDep,
) -> Response:
    if not await repo.delete(parse_resource_id(project_id, "project")):
        raise NotFoundError("Project not found")
    return Response(status_code=204)


# ---------------------------------------------------------------------------
# Members
# ---------------------------------------------------------------------------


@router.post(
    "/projects/{project_id}/members/add", response_model=ProjectMemberResponse, status_code=201
)
async def add_member(
    ctx: AdminContextDep,
    project_id: str,
    body: JsonBody,
    projects: ProjectsRepoDep,
    employees: EmployeesRepoDep,
    members: ProjectMembersRepoDep,
) -> ProjectMemberResponse:
    pk = parse_resource_id(project_id, "project")
    data = validate_input(MemberAction, body)
    if await projects.get(pk) is None:
        raise NotFoundError("Project not found")
    if await employees.get(data.user_id) is None:
        raise ValidationError("Member not found")
    if await members.get(pk, data.user_id) is not None:
        raise ConflictError("Member already assigned to project")
    member = await members.add(pk, data.user_id)
    log.info("project_member_added", project_id=pk, member_id=data.user_id)
    return ProjectMemberResponse(member=ProjectMemberSchema.model_validate(member))


@router.get("/projects/{project_id}/members/list", response_model=ProjectMemberListResponse)
async def list_members(
    ctx: AdminContextDep,
    project_id: str,
    projects: ProjectsRepoDep,
    members: ProjectMembersRepoDep,
) -> ProjectMemberListResponse:
    pk = parse_resource_id(project_id, "project")
    if await projects.get(pk) is None:
        raise NotFoundError("Project not found")
    rows = await members.list(pk)
    return ProjectMemberListResponse(members=[ProjectMemberSchema.model_validate(r) for r in rows])


@router.post("/projects/{project_id}/members/remove", status_code=204)
async def remove_member(
    ctx: AdminContextDep,
    project_id: str,
    body: JsonBody,
    members: ProjectMembersRepoDep,
) -> Response:
    pk = parse_resource_id(project_id, "project")
    data = validate_input(MemberAction, body)
    if not await members.remove(pk, data.user_id):
        raise NotFoundError("Member not assigned to project")
    log.info("project_member_removed", project_id=pk, member_id=data.user_id)
    return Response(status_code=204)
