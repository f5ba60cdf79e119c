from __future__ import annotations

from sqlalchemy import select

from aivestor.db.repository import BaseRepository
from aivestor.models.user import User


class UserRepository(BaseRepository[User]):
    def __init__(self, session):
        super().__init__(User, session)

    async def get_by_email(self, email: str) -> User | None:
        if not email:
            return None
        stmt = select(User).where(User.email == email).limit(1)
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_all(self) -> list[User]:
        result = await self._session.execute(select(User).order_by(User.created_at))
        return list(result.scalars().all())

    async def ensure(self, email: str, risk_tolerance: float = 0.5, risk_level: str | None = None) -> User:
        """Return the user with this e-mail, creating it when missing."""
        existing = await self.get_by_email(email)
        if existing:
            return existing
        return await self.create(
            User(email=email, risk_tolerance=risk_tolerance, risk_level=risk_level)
        )
