from typing import Any, Generic, TypeVar

from sqlalchemy.ext.asyncio import AsyncSession

from aivestor.models.base import Base

ModelT = TypeVar("ModelT", bound=Base)


class BaseRepository(Generic[ModelT]):
    """Shared CRUD for single-table repositories."""

    def __init__(self, model: type[ModelT], session: AsyncSession):
        self._model = model
        self._session = session

    async def get_by_id(self, id_val: Any) -> ModelT | None:
        return await self._session.get(self._model, id_val)

    async def create(self, obj: ModelT) -> ModelT:
        self._session.add(obj)
        await self._session.flush()
        await self._session.refresh(obj)
        return obj

    async def update(self, obj: ModelT, values: dict[str, Any]) -> ModelT:
        for field, val in values.items():
            setattr(obj, field, val)
        await self._session.flush()
        await self._session.refresh(obj)
        return obj

    async def delete(self, obj: ModelT) -> None:
        await self._session.delete(obj)
        await self._session.flush()
