"""Repository for back-office profiles."""

from __future__ import annotations

from sqlalchemy import select

from backoffice_service.db.models import ProfileModel
from backoffice_service.db.repositories.base import CrudRepo
from backoffice_service.db.search import contains_any


class AccountsRepo(CrudRepo[ProfileModel]):
    model = ProfileModel
    # Profile writes are committed by the handler once the identity provider
    # call that belongs with them has succeeded.
    autocommit = False

    async def list(self, q: str = "") -> list[ProfileModel]:
        query = select(ProfileModel)
        if q:
            query = query.where(
                contains_any(q, ProfileModel.email, ProfileModel.username, ProfileModel.full_name)
            )
        query = query.order_by(ProfileModel.created_at.desc(), ProfileModel.id.desc())
        result = await self._session.execute(query)
        return list(result.scalars().all())
