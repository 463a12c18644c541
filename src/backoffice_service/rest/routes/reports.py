"""Aggregate project reports."""

from __future__ import annotations

from fastapi import APIRouter

from backoffice_service.auth.deps import AdminContextDep
from backoffice_service.db.deps import ReportsRepoDep
from backoffice_service.reporting import burndown_points, milestone_progress
from backoffice_service.rest.deps import QueryParams
from backoffice_service.rest.schemas import (
    BurndownResponse,
    MilestoneProgressResponse,
    ProjectScopedQuery,
    StatusSummaryResponse,
)
from backoffice_service.validation import validate_input

router = APIRouter()


@router.get("/reports/milestones/progress", response_model=MilestoneProgressResponse)
async def milestones_progress(
    ctx: AdminContextDep,
    query: QueryParams,
    repo: ReportsRepoDep,
) -> MilestoneProgressResponse:
    params = validate_input(ProjectScopedQuery, query)
    rows = await repo.milestone_counts(params.project_id)
    return MilestoneProgressResponse(items=milestone_progress(rows))


@router.get("/reports/projects/burndown", response_model=BurndownResponse)
async def project_burndown(
    ctx: AdminContextDep,
    query: QueryParams,
    repo: ReportsRepoDep,
) -> BurndownResponse:
    params = validate_input(ProjectScopedQuery, query)
    tasks = await repo.task_timeline(params.project_id)
    return BurndownResponse(points=burndown_points(tasks))


@router.get("/reports/tasks/status-summary", response_model=StatusSummaryResponse)
async def tasks_status_summary(
    ctx: AdminContextDep,
    query: QueryParams,
    repo: ReportsRepoDep,
) -> StatusSummaryResponse:
    params = validate_input(ProjectScopedQuery, query)
    rows = await repo.status_counts(params.project_id)
    return StatusSummaryResponse(items=rows)
