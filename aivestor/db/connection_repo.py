from __future__ import annotations

from datetime import UTC, datetime

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from aivestor.models.brokerage_connection import BrokerageConnection, ConnectionStatus


class ConnectionRepository:
    def __init__(self, session: AsyncSession):
        self._session = session

    async def get(self, account_id: str, broker_name: str) -> BrokerageConnection | None:
        stmt = select(BrokerageConnection).where(
            BrokerageConnection.account_id == account_id,
            BrokerageConnection.broker_name == broker_name,
        )
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_for_account(self, account_id: str) -> list[BrokerageConnection]:
        stmt = (
            select(BrokerageConnection)
            .where(BrokerageConnection.account_id == account_id)
            .order_by(BrokerageConnection.created_at)
        )
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    async def first_connected(self, account_id: str) -> BrokerageConnection | None:
        stmt = (
            select(BrokerageConnection)
            .where(
                BrokerageConnection.account_id == account_id,
                BrokerageConnection.status == ConnectionStatus.CONNECTED.value,
            )
            .order_by(BrokerageConnection.connected_at)
            .limit(1)
        )
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def insert_if_absent(
        self, account_id: str, broker_name: str, credential_encrypted: str | None
    ) -> BrokerageConnection | None:
        """Insert a connected row; None when one already exists for the pair."""
        stmt = (
            pg_insert(BrokerageConnection)
            .values(
                account_id=account_id,
                broker_name=broker_name,
                credential_encrypted=credential_encrypted,
                status=ConnectionStatus.CONNECTED.value,
                connected_at=datetime.now(UTC),
            )
            .on_conflict_do_nothing(index_elements=["account_id", "broker_name"])
            .returning(BrokerageConnection.id)
        )
        result = await self._session.execute(stmt)
        new_id = result.scalar_one_or_none()
        if new_id is None:
            return None
        return await self._session.get(BrokerageConnection, new_id)
