from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from aivestor.models.transaction import TradeTransaction


class TransactionRepository:
    """Append-only trade log."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def append(self, row: TradeTransaction) -> None:
        self._session.add(row)
        await self._session.flush()

    async def list_after(self, account_id: str, after_sequence: int = 0) -> list[TradeTransaction]:
        stmt = (
            select(TradeTransaction)
            .where(
                TradeTransaction.account_id == account_id,
                TradeTransaction.sequence > after_sequence,
            )
            .order_by(TradeTransaction.sequence)
        )
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    async def latest(self, account_id: str, limit: int) -> list[TradeTransaction]:
        stmt = (
            select(TradeTransaction)
            .where(TradeTransaction.account_id == account_id)
            .order_by(TradeTransaction.sequence.desc())
            .limit(limit)
        )
        result = await self._session.execute(stmt)
        return list(result.scalars().all())
