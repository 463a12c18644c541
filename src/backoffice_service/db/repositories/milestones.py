"""Repository for project milestones."""

from __future__ import annotations

from sqlalchemy import select

from backoffice_service.db.models import MilestoneModel
from backoffice_service.db.repositories.base import CrudRepo


class MilestonesRepo(CrudRepo[MilestoneModel]):
    model = MilestoneModel

    async def list_by_project(self, project_id: int) -> list[MilestoneModel]:
        result = await self._session.execute(
            select(MilestoneModel)
            .where(MilestoneModel.project_id == project_id)
            .order_by(MilestoneModel.start_date.asc().nulls_last(), MilestoneModel.id.desc())
        )
        return list(result.scalars().all())
