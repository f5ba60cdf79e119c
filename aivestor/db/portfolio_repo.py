from __future__ import annotations

from datetime import datetime

from sqlalchemy import update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from aivestor.models.portfolio import PortfolioDocument


class PortfolioRepository:
    def __init__(self, session: AsyncSession):
        self._session = session

    async def get(self, account_id: str) -> PortfolioDocument | None:
        return await self._session.get(PortfolioDocument, account_id)

    async def compare_and_set(
        self,
        account_id: str,
        expected_version: int,
        positions: list[dict],
        updated_at: datetime,
        *,
        baseline_positions: list[dict] | None = None,
        synced_at: datetime | None = None,
    ) -> bool:
        """Write the snapshot only if its version is still ``expected_version``.

        Version 0 means "no document yet": the row is inserted and a concurrent
        insert makes this return False.
        """
        new_version = expected_version + 1
        values = dict(positions=positions, version=new_version, updated_at=updated_at)
        if baseline_positions is not None:
            values.update(
                baseline_positions=baseline_positions,
                baseline_version=new_version,
                synced_at=synced_at,
            )

        if expected_version == 0:
            stmt = (
                pg_insert(PortfolioDocument)
                .values(account_id=account_id, **values)
                .on_conflict_do_nothing(index_elements=["account_id"])
                .returning(PortfolioDocument.account_id)
            )
            result = await self._session.execute(stmt)
            return result.scalar_one_or_none() is not None

        stmt = (
            update(PortfolioDocument)
            .where(
                PortfolioDocument.account_id == account_id,
                PortfolioDocument.version == expected_version,
            )
            .values(**values)
        )
        result = await self._session.execute(stmt)
        return result.rowcount == 1
