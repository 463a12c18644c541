"""Repository for projects and their member assignments."""

from __future__ import annotations

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice_service.db.models import ProjectMemberModel, ProjectModel
from backoffice_service.db.repositories.base import CrudRepo
from backoffice_service.db.search import contains_any


class ProjectsRepo(CrudRepo[ProjectModel]):
    model = ProjectModel

    async def list(self, q: str = "") -> list[ProjectModel]:
        query = select(ProjectModel)
        if q:
            query = query.where(contains_any(q, ProjectModel.title))
        query = query.order_by(ProjectModel.created_at.desc(), ProjectModel.id.desc())
        result = await self._session.execute(query)
        return list(result.scalars().all())


class ProjectMembersRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, project_id: int, user_id: int) -> ProjectMemberModel | None:
        return await self._session.get(ProjectMemberModel, (project_id, user_id))

    async def list(self, project_id: int) -> list[ProjectMemberModel]:
        result = await self._session.execute(
            select(ProjectMemberModel)
            .where(ProjectMemberModel.project_id == project_id)
            .order_by(ProjectMemberModel.added_at.desc(), ProjectMemberModel.user_id.desc())
        )
        return list(result.scalars().all())

    async def add(self, project_id: int, user_id: int) -> ProjectMemberModel:
        member = ProjectMemberModel(project_id=project_id, user_id=user_id)
        self._session.add(member)
        await self._session.flush()
        await self._session.commit()
        return member

    async def remove(self, project_id: int, user_id: int) -> bool:
        result = await self._session.execute(
            delete(ProjectMemberModel)
            .where(
                ProjectMemberModel.project_id == project_id,
                ProjectMemberModel.user_id == user_id,
            )
            .returning(ProjectMemberModel.user_id)
        )
        removed = result.first() is not None
        await self._session.commit()
        return removed
