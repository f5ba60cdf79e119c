from __future__ import annotations

from sqlalchemy import select

from aivestor.db.repository import BaseRepository
from aivestor.models.alert import PriceAlert
from aivestor.models.nudge import Nudge

FEED_LIMIT = 20


class NudgeRepository(BaseRepository[Nudge]):
    def __init__(self, session):
        super().__init__(Nudge, session)

    async def latest_for_user(self, user_id: str, limit: int = FEED_LIMIT) -> list[Nudge]:
        stmt = (
            select(Nudge)
            .where(Nudge.user_id == user_id)
            .order_by(Nudge.created_at.desc())
            .limit(limit)
        )
        result = await self._session.execute(stmt)
        return list(result.scalars().all())


class AlertRepository(BaseRepository[PriceAlert]):
    def __init__(self, session):
        super().__init__(PriceAlert, session)

    async def latest_for_user(self, user_id: str, limit: int = FEED_LIMIT) -> list[PriceAlert]:
        stmt = (
            select(PriceAlert)
            .where(PriceAlert.user_id == user_id)
            .order_by(PriceAlert.created_at.desc())
            .limit(limit)
        )
        result = await self._session.execute(stmt)
        return list(result.scalars().all())
