"""Repository for employees (assignable members)."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice_service.db.models import EmployeeModel
from backoffice_service.db.search import contains_any


class EmployeesRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, employee_id: int) -> EmployeeModel | None:
        return await self._session.get(EmployeeModel, employee_id)

    async def list(self, q: str = "") -> list[EmployeeModel]:
        query = select(EmployeeModel)
        if q:
            query = query.where(contains_any(q, EmployeeModel.surname))
        result = await self._session.execute(query.order_by(EmployeeModel.id.desc()))
        return list(result.scalars().all())
