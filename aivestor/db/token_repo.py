from __future__ import annotations

import hashlib
from datetime import UTC, datetime

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from aivestor.models.auth_token import OneTimeToken


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


class OneTimeTokenRepository:
    def __init__(self, session: AsyncSession):
        self._session = session

    async def issue(self, token: str, purpose: str, email: str, expires_at: datetime) -> OneTimeToken:
        row = OneTimeToken(
            token_hash=hash_token(token),
            purpose=purpose,
            email=email,
            expires_at=expires_at,
        )
        self._session.add(row)
        await self._session.flush()
        return row

    async def consume(self, token: str, purpose: str) -> str | None:
        """Atomically mark an unused, unexpired token as used. Returns its e-mail."""
        now = datetime.now(UTC)
        stmt = (
            update(OneTimeToken)
            .where(
                OneTimeToken.token_hash == hash_token(token),
                OneTimeToken.purpose == purpose,
                OneTimeToken.used_at.is_(None),
                OneTimeToken.expires_at > now,
            )
            .values(used_at=now)
            .returning(OneTimeToken.email)
        )
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()
