"""Durable-store interfaces for the ledger and their SQLAlchemy implementations.

Each ``commit_*`` call is one database transaction: the conditional snapshot
write and (for trades) the transaction append either both commit or neither
does. A ``False`` return means the version token moved and nothing was written.
"""
from __future__ import annotations

import contextlib
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import async_sessionmaker

from aivestor.db.connection_repo import ConnectionRepository
from aivestor.db.portfolio_repo import PortfolioRepository
from aivestor.db.transaction_repo import TransactionRepository
from aivestor.ledger.errors import CollaboratorError
from aivestor.ledger.positions import (
    PositionSet,
    TradeSide,
    Transaction,
    positions_from_list,
    positions_to_list,
)
from aivestor.models.brokerage_connection import ConnectionStatus
from aivestor.models.transaction import TradeTransaction

logger = logging.getLogger(__name__)


@dataclass
class PortfolioSnapshot:
    account_id: str
    positions: PositionSet = field(default_factory=dict)
    version: int = 0
    updated_at: datetime | None = None
    synced_at: datetime | None = None
    baseline_positions: PositionSet = field(default_factory=dict)
    baseline_version: int = 0


class LedgerStore(ABC):
    """Per-account portfolio document + append-only transaction log."""

    @abstractmethod
    async def load_snapshot(self, account_id: str) -> PortfolioSnapshot: ...

    @abstractmethod
    async def commit_trade(
        self, snapshot: PortfolioSnapshot, positions: PositionSet, transaction: Transaction
    ) -> bool: ...

    @abstractmethod
    async def commit_sync(
        self, snapshot: PortfolioSnapshot, positions: PositionSet, synced_at: datetime
    ) -> bool: ...

    @abstractmethod
    async def list_transactions(
        self, account_id: str, after_sequence: int = 0
    ) -> list[Transaction]: ...

    @abstractmethod
    async def recent_transactions(self, account_id: str, limit: int) -> list[Transaction]: ...


class ConnectionStore(ABC):
    """Brokerage connections keyed by (account_id, broker_name)."""

    @abstractmethod
    async def get(self, account_id: str, broker_name: str) -> Any | None: ...

    @abstractmethod
    async def list_for_account(self, account_id: str) -> list[Any]: ...

    @abstractmethod
    async def first_connected(self, account_id: str) -> Any | None: ...

    @abstractmethod
    async def connect(
        self, account_id: str, broker_name: str, credential_encrypted: str | None
    ) -> tuple[Any, bool]: ...

    @abstractmethod
    async def mark_disconnected(self, account_id: str, broker_name: str) -> Any | None: ...


@contextlib.contextmanager
def collaborator_errors(what: str):
    """Surface connectivity failures of the database as CollaboratorError."""
    try:
        yield
    except (OperationalError, InterfaceError, OSError) as e:
        logger.error("%s unavailable: %s", what, e)
        raise CollaboratorError(f"{what} unavailable") from e


def _row_to_transaction(row: TradeTransaction) -> Transaction:
    return Transaction(
        account_id=row.account_id,
        symbol=row.symbol,
        side=TradeSide(row.side),
        quantity=row.quantity,
        price=row.price,
        total=row.total,
        timestamp=row.timestamp,
        id=row.id,
        sequence=row.sequence,
    )


# ---------------------------------------------------------------------------
# SQLAlchemy implementations
# ---------------------------------------------------------------------------

class SqlLedgerStore(LedgerStore):
    def __init__(self, session_factory: async_sessionmaker):
        self._session_factory = session_factory

    async def load_snapshot(self, account_id: str) -> PortfolioSnapshot:
        with collaborator_errors("Portfolio store"):
            async with self._session_factory() as session:
                doc = await PortfolioRepository(session).get(account_id)
        if doc is None:
            return PortfolioSnapshot(account_id=account_id)
        return PortfolioSnapshot(
            account_id=account_id,
            positions=positions_from_list(doc.positions),
            version=doc.version,
            updated_at=doc.updated_at,
            synced_at=doc.synced_at,
            baseline_positions=positions_from_list(doc.baseline_positions),
            baseline_version=doc.baseline_version,
        )

    async def commit_trade(
        self, snapshot: PortfolioSnapshot, positions: PositionSet, transaction: Transaction
    ) -> bool:
        with collaborator_errors("Portfolio store"):
            async with self._session_factory() as session:
                async with session.begin():
                    written = await PortfolioRepository(session).compare_and_set(
                        snapshot.account_id,
                        snapshot.version,
                        positions_to_list(positions),
                        transaction.timestamp,
                    )
                    if not written:
                        return False
                    await TransactionRepository(session).append(
                        TradeTransaction(
                            id=transaction.id,
                            account_id=transaction.account_id,
                            sequence=transaction.sequence,
                            symbol=transaction.symbol,
                            side=transaction.side.value,
                            quantity=transaction.quantity,
                            price=transaction.price,
                            total=transaction.total,
                            timestamp=transaction.timestamp,
                        )
                    )
        return True

    async def commit_sync(
        self, snapshot: PortfolioSnapshot, positions: PositionSet, synced_at: datetime
    ) -> bool:
        rows = positions_to_list(positions)
        with collaborator_errors("Portfolio store"):
            async with self._session_factory() as session:
                async with session.begin():
                    return await PortfolioRepository(session).compare_and_set(
                        snapshot.account_id,
                        snapshot.version,
                        rows,
                        synced_at,
                        baseline_positions=rows,
                        synced_at=synced_at,
                    )

    async def list_transactions(self, account_id: str, after_sequence: int = 0) -> list[Transaction]:
        with collaborator_errors("Transaction log"):
            async with self._session_factory() as session:
                rows = await TransactionRepository(session).list_after(account_id, after_sequence)
        return [_row_to_transaction(r) for r in rows]

    async def recent_transactions(self, account_id: str, limit: int) -> list[Transaction]:
        with collaborator_errors("Transaction log"):
            async with self._session_factory() as session:
                rows = await TransactionRepository(session).latest(account_id, limit)
        return [_row_to_transaction(r) for r in rows]


class SqlConnectionStore(ConnectionStore):
    def __init__(self, session_factory: async_sessionmaker):
        self._session_factory = session_factory

    async def get(self, account_id: str, broker_name: str):
        with collaborator_errors("Connection store"):
            async with self._session_factory() as session:
                return await ConnectionRepository(session).get(account_id, broker_name)

    async def list_for_account(self, account_id: str):
        with collaborator_errors("Connection store"):
            async with self._session_factory() as session:
                return await ConnectionRepository(session).list_for_account(account_id)

    async def first_connected(self, account_id: str):
        with collaborator_errors("Connection store"):
            async with self._session_factory() as session:
                return await ConnectionRepository(session).first_connected(account_id)

    async def connect(self, account_id: str, broker_name: str, credential_encrypted: str | None):
        with collaborator_errors("Connection store"):
            async with self._session_factory() as session:
                async with session.begin():
                    repo = ConnectionRepository(session)
                    existing = await repo.get(account_id, broker_name)
                    if existing is None:
                        inserted = await repo.insert_if_absent(
                            account_id, broker_name, credential_encrypted
                        )
                        if inserted is not None:
                            return inserted, True
                        # lost the insert race; the other request's row is ours now
                        existing = await repo.get(account_id, broker_name)
                    existing.status = ConnectionStatus.CONNECTED.value
                    existing.connected_at = datetime.now(UTC)
                    existing.disconnected_at = None
                    if credential_encrypted:
                        existing.credential_encrypted = credential_encrypted
                    await session.flush()
                    return existing, False

    async def mark_disconnected(self, account_id: str, broker_name: str):
        with collaborator_errors("Connection store"):
            async with self._session_factory() as session:
                async with session.begin():
                    conn = await ConnectionRepository(session).get(account_id, broker_name)
                    if conn is None:
                        return None
                    conn.status = ConnectionStatus.DISCONNECTED.value
                    conn.disconnected_at = datetime.now(UTC)
                    await session.flush()
                    return conn
