"""Shared single-statement CRUD for integer- or UUID-keyed tables."""

from __future__ import annotations

from typing import Any, Generic, TypeVar

from sqlalchemy import delete, update
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice_service.db.models import Base

ModelT = TypeVar("ModelT", bound=Base)


class CrudRepo(Generic[ModelT]):
    """Get/create/update/delete by primary key ``id``.

    ``autocommit`` repos commit after each write. The others only flush and
    leave the commit to the caller, which lets a handler pair a row change
    with an external call in one transaction.
    """

    model: type[ModelT]
    autocommit = True

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def _finish(self) -> None:
        if self.autocommit:
            await self._session.commit()
        else:
            await self._session.flush()

    async def get(self, pk: Any) -> ModelT | None:
        return await self._session.get(self.model, pk)

    async def create(self, **fields: Any) -> ModelT:
        row = self.model(**fields)
        self._session.add(row)
        await self._session.flush()
        if self.autocommit:
            await self._session.commit()
        return row

    async def update(self, pk: Any, changes: dict[str, Any]) -> ModelT | None:
        """Apply ``changes`` in one UPDATE ... RETURNING; ``None`` if no row matched."""
        result = await self._session.execute(
            update(self.model)
            .where(self.model.id == pk)
            .values(**changes)
            .returning(self.model)
            .execution_options(populate_existing=True)
        )
        row = result.scalars().first()
        await self._finish()
        return row

    async def delete(self, pk: Any) -> bool:
        result = await self._session.execute(
            delete(self.model).where(self.model.id == pk).returning(self.model.id)
        )
        deleted = result.first() is not None
        await self._finish()
        return deleted

    async def commit(self) -> None:
        await self._session.commit()

    async def rollback(self) -> None:
        await self._session.rollback()
