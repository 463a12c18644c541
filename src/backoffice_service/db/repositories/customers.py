"""Repository for customers."""

from __future__ import annotations

from sqlalchemy import select

from backoffice_service.db.models import CustomerModel
from backoffice_service.db.repositories.base import CrudRepo
from backoffice_service.db.search import contains_any


class CustomersRepo(CrudRepo[CustomerModel]):
    model = CustomerModel

    async def list(self, q: str = "") -> list[CustomerModel]:
        query = select(CustomerModel)
        if q:
            query = query.where(contains_any(q, CustomerModel.title))
        query = query.order_by(CustomerModel.created_at.desc(), CustomerModel.id.desc())
        result = await self._session.execute(query)
        return list(result.scalars().all())
