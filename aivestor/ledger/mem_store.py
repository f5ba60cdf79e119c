"""In-memory implementations of the ledger and connection stores.

Same async signatures and the same version-token semantics as the SQL
stores, backed by plain dicts. Used by tests and for running the API without
a database.
"""
from __future__ import annotations

import asyncio
import uuid
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime

from aivestor.ledger.positions import PositionSet, Transaction
from aivestor.ledger.store import ConnectionStore, LedgerStore, PortfolioSnapshot
from aivestor.models.brokerage_connection import ConnectionStatus


class InMemoryLedgerStore(LedgerStore):
    def __init__(self) -> None:
        self._snapshots: dict[str, PortfolioSnapshot] = {}
        self._transactions: dict[str, list[Transaction]] = {}
        self._lock = asyncio.Lock()

    async def load_snapshot(self, account_id: str) -> PortfolioSnapshot:
        current = self._snapshots.get(account_id)
        snapshot = (
            replace(
                current,
                positions=dict(current.positions),
                baseline_positions=dict(current.baseline_positions),
            )
            if current is not None
            else PortfolioSnapshot(account_id=account_id)
        )
        # Give other tasks a chance to run between read and write, like a real round-trip
        await asyncio.sleep(0)
        return snapshot

    def _version(self, account_id: str) -> int:
        current = self._snapshots.get(account_id)
        return current.version if current is not None else 0

    async def commit_trade(
        self, snapshot: PortfolioSnapshot, positions: PositionSet, transaction: Transaction
    ) -> bool:
        async with self._lock:
            if self._version(snapshot.account_id) != snapshot.version:
                return False
            previous = self._snapshots.get(snapshot.account_id) or snapshot
            self._snapshots[snapshot.account_id] = replace(
                previous,
                positions=dict(positions),
                version=snapshot.version + 1,
                updated_at=transaction.timestamp,
            )
            self._transactions.setdefault(snapshot.account_id, []).append(transaction)
            return True

    async def commit_sync(
        self, snapshot: PortfolioSnapshot, positions: PositionSet, synced_at: datetime
    ) -> bool:
        async with self._lock:
            if self._version(snapshot.account_id) != snapshot.version:
                return False
            new_version = snapshot.version + 1
            self._snapshots[snapshot.account_id] = PortfolioSnapshot(
                account_id=snapshot.account_id,
                positions=dict(positions),
                version=new_version,
                updated_at=synced_at,
                synced_at=synced_at,
                baseline_positions=dict(positions),
                baseline_version=new_version,
            )
            return True

    async def list_transactions(self, account_id: str, after_sequence: int = 0) -> list[Transaction]:
        return sorted(
            (t for t in self._transactions.get(account_id, []) if t.sequence > after_sequence),
            key=lambda t: t.sequence,
        )

    async def recent_transactions(self, account_id: str, limit: int) -> list[Transaction]:
        rows = sorted(self._transactions.get(account_id, []), key=lambda t: t.sequence, reverse=True)
        return rows[:limit]


@dataclass
class MemConnection:
    """Same attributes as the BrokerageConnection model."""

    account_id: str
    broker_name: str
    credential_encrypted: str | None = None
    status: str = ConnectionStatus.CONNECTED.value
    connected_at: datetime | None = None
    disconnected_at: datetime | None = None
    id: uuid.UUID = field(default_factory=uuid.uuid4)
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))


class InMemoryConnectionStore(ConnectionStore):
    def __init__(self) -> None:
        self._connections: dict[tuple[str, str], MemConnection] = {}

    async def get(self, account_id: str, broker_name: str) -> MemConnection | None:
        return self._connections.get((account_id, broker_name))

    async def list_for_account(self, account_id: str) -> list[MemConnection]:
        return sorted(
            (c for c in self._connections.values() if c.account_id == account_id),
            key=lambda c: c.created_at,
        )

    async def first_connected(self, account_id: str) -> MemConnection | None:
        connected = [
            c for c in await self.list_for_account(account_id)
            if c.status == ConnectionStatus.CONNECTED.value
        ]
        return min(connected, key=lambda c: c.connected_at, default=None)

    async def connect(
        self, account_id: str, broker_name: str, credential_encrypted: str | None
    ) -> tuple[MemConnection, bool]:
        now = datetime.now(UTC)
        existing = self._connections.get((account_id, broker_name))
        if existing is None:
            conn = MemConnection(
                account_id=account_id,
                broker_name=broker_name,
                credential_encrypted=credential_encrypted,
                connected_at=now,
            )
            self._connections[(account_id, broker_name)] = conn
            return conn, True
        existing.status = ConnectionStatus.CONNECTED.value
        existing.connected_at = now
        existing.disconnected_at = None
        if credential_encrypted:
            existing.credential_encrypted = credential_encrypted
        return existing, False

    async def mark_disconnected(self, account_id: str, broker_name: str) -> MemConnection | None:
        conn = self._connections.get((account_id, broker_name))
        if conn is None:
            return None
        conn.status = ConnectionStatus.DISCONNECTED.value
        conn.disconnected_at = datetime.now(UTC)
        return conn
