"""Repository for tasks."""

from __future__ import annotations

from sqlalchemy import select

from backoffice_service.db.models import TaskModel
from backoffice_service.db.repositories.base import CrudRepo
from backoffice_service.db.search import contains_any


class TasksRepo(CrudRepo[TaskModel]):
    model = TaskModel

    async def list(
        self,
        project_id: int,
        q: str = "",
        status: str | None = None,
        include_archived: bool = False,
    ) -> list[TaskModel]:
        """Kanban order: ``order_index`` descending, then ``id`` descending."""
        query = select(TaskModel).where(TaskModel.project_id == project_id)
        if q:
            query = query.where(contains_any(q, TaskModel.title, TaskModel.description))
        if status:
            query = query.where(TaskModel.status == status)
        if not include_archived:
            query = query.where(TaskModel.is_archived.is_(False))
        query = query.order_by(TaskModel.order_index.desc(), TaskModel.id.desc())
        result = await self._session.execute(query)
        return list(result.scalars().all())
