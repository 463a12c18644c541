"""Read-only aggregate queries behind the report endpoints."""

from __future__ import annotations

from typing import Any

from sqlalchemy import and_, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice_service.db.models import MilestoneModel, TaskModel


class ReportsRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def milestone_counts(self, project_id: int) -> list[dict[str, Any]]:
        """Total and done non-archived tasks per milestone of the project."""
        result = await self._session.execute(
            select(
                MilestoneModel.id.label("milestone_id"),
                MilestoneModel.title,
                func.count(TaskModel.id).label("total"),
                func.count(TaskModel.id).filter(TaskModel.status == "done").label("done"),
            )
            .select_from(MilestoneModel)
            .outerjoin(
                TaskModel,
                and_(TaskModel.milestone_id == MilestoneModel.id, TaskModel.is_archived.is_(False)),
            )
            .where(MilestoneModel.project_id == project_id)
            .group_by(MilestoneModel.id, MilestoneModel.title, MilestoneModel.start_date)
            .order_by(MilestoneModel.start_date.asc().nulls_last(), MilestoneModel.id.desc())
        )
        return [dict(row._mapping) for row in result]

    async def task_timeline(self, project_id: int) -> list[dict[str, Any]]:
        """Creation/update timestamps and status of every task of the project."""
        result = await self._session.execute(
            select(TaskModel.created_at, TaskModel.updated_at, TaskModel.status).where(
                TaskModel.project_id == project_id
            )
        )
        return [dict(row._mapping) for row in result]

    async def status_counts(self, project_id: int) -> list[dict[str, Any]]:
        result = await self._session.execute(
            select(TaskModel.status, func.count().label("count"))
            .where(TaskModel.project_id == project_id, TaskModel.is_archived.is_(False))
            .group_by(TaskModel.status)
            .order_by(TaskModel.status)
        )
        return [dict(row._mapping) for row in result]
