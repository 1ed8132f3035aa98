"""Generic async repository for id-keyed tables."""

from typing import Any, Generic, TypeVar

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from smileforward.persistence.database import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """Lookup, listing and commit-per-write create/update."""

    def __init__(self, model: type[ModelType], session: AsyncSession):
        self.model = model
        self.session = session

    async def get_by_id(self, id: int) -> ModelType | None:
        return await self.session.scalar(select(self.model).filter_by(id=id))

    async def list(self, skip: int = 0, limit: int = 100, **filters: Any) -> list[ModelType]:
        """Rows in id order matching every ``column=value`` filter."""
        stmt = select(self.model).filter_by(**filters).order_by(self.model.id).offset(skip).limit(limit)
        return list(await self.session.scalars(stmt))

    async def create(self, **values: Any) -> ModelType:
        instance = self.model(**values)
        self.session.add(instance)
        await self._commit(instance)
        return instance

    async def update(self, id: int, **values: Any) -> ModelType | None:
        """Set columns on an existing row; None if the id is unknown."""
        instance = await self.get_by_id(id)
        if instance is None:
            return None
        for column, value in values.items():
            setattr(instance, column, value)
        await self._commit(instance)
        return instance

    async def _commit(self, instance: ModelType) -> None:
        await self.session.commit()
        await self.session.refresh(instance)
