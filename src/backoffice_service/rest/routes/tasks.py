"""Task endpoints: kanban listing, CRUD and reordering."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Response

from backoffice_service.auth.deps import AdminContextDep
from backoffice_service.db.deps import (
    EmployeesRepoDep,
    MilestonesRepoDep,
    ProjectsRepoDep,
    TasksRepoDep,
)
from backoffice_service.db.repositories.employees import EmployeesRepo
from backoffice_service.db.repositories.milestones import MilestonesRepo
from backoffice_service.errors import NotFoundError, ValidationError
from backoffice_service.rest.deps import JsonBody, QueryParams
from backoffice_service.rest.schemas import (
    TaskCreate,
    TaskListQuery,
    TaskListResponse,
    TaskReorder,
    TaskResponse,
    TaskSchema,
    TaskUpdate,
)
from backoffice_service.validation import (
    changes,
    parse_resource_id,
    require_changes,
    validate_input,
)

router = APIRouter()


async def _check_references(
    fields: dict[str, Any],
    project_id: int,
    milestones: MilestonesRepo,
    employees: EmployeesRepo,
) -> None:
    """Milestone must belong to the task's project; assignee must exist."""
    milestone_id = fields.get("milestone_id")
    if milestone_id is not None:
        milestone = await milestones.get(milestone_id)
        if milestone is None or milestone.project_id != project_id:
            raise ValidationError("Milestone does not belong to the project")
    assignee_id = fields.get("assignee_id")
    if assignee_id is not None and await employees.get(assignee_id) is None:
        raise ValidationError("Assignee not found")


@router.get("/tasks/list", response_model=TaskListResponse)
async def list_tasks(
    ctx: AdminContextDep,
    query: QueryParams,
    repo: TasksRepoDep,
) -> TaskListResponse:
    params = validate_input(TaskListQuery, query)
    rows = await repo.list(
        params.project_id,
        q=params.q,
        status=params.status,
        include_archived=params.include_archived,
    )
    return TaskListResponse(items=[TaskSchema.model_validate(r) for r in rows])


@router.post("/tasks/create", response_model=TaskResponse, status_code=201)
async def create_task(
    ctx: AdminContextDep,
    body: JsonBody,
    repo: TasksRepoDep,
    projects: ProjectsRepoDep,
    milestones: MilestonesRepoDep,
    employees: EmployeesRepoDep,
) -> TaskResponse:
    data = validate_input(TaskCreate, body)
    fields = data.model_dump()
    if await projects.get(data.project_id) is None:
        raise ValidationError("Project not found")
    await _check_references(fields, data.project_id, milestones, employees)
    row = await repo.create(**fields)
    return TaskResponse(task=TaskSchema.model_validate(row))


@router.patch("/tasks/reorder", response_model=TaskResponse)
async def reorder_task(
    ctx: AdminContextDep,
    body: JsonBody,
    repo: TasksRepoDep,
) -> TaskResponse:
    data = validate_input(TaskReorder, body)
    patch = changes(data)
    patch.pop("id")
    row = await repo.update(data.id, patch)
    if row is None:
        raise NotFoundError("Task not found")
    return TaskResponse(task=TaskSchema.model_validate(row))


@router.patch("/tasks/{task_id}/update", response_model=TaskResponse)
async def update_task(
    ctx: AdminContextDep,
    task_id: str,
    body: JsonBody,
    repo: TasksRepoDep,
    milestones: MilestonesRepoDep,
    employees: EmployeesRepoDep,
) -> TaskResponse:
    pk = parse_resource_id(task_id, "task")
    patch = require_changes(validate_input(TaskUpdate, body))
    current = await repo.get(pk)
    if current is None:
        raise NotFoundError("Task not found")
    await _check_references(patch, current.project_id, milestones, employees)
    row = await repo.update(pk, patch)
    if row is None:
        raise NotFoundError("Task not found")
    return TaskResponse(task=TaskSchema.model_validate(row))


@router.delete("/tasks/{task_id}/delete", status_code=204)
async def delete_task(
    ctx: AdminContextDep,
    task_id: str,
    repo: TasksRepoDep,
) -> Response:
    if not await repo.delete(parse_resource_id(task_id, "task")):
        raise NotFoundError("Task not found")
    return Response(status_code=204)
