from __future__ import annotations

from uuid import UUID

from sqlalchemy import select

from aivestor.db.repository import BaseRepository
from aivestor.models.holding import Holding


class HoldingRepository(BaseRepository[Holding]):
    def __init__(self, session):
        super().__init__(Holding, session)

    async def list_for_user(self, user_id: UUID) -> list[Holding]:
        stmt = select(Holding).where(Holding.user_id == user_id).order_by(Holding.created_at)
        result = await self._session.execute(stmt)
        return list(result.scalars().all())
