from __future__ import annotations

import asyncio
import logging
import random
import time
from dataclasses import dataclass
from datetime import UTC, datetime

from aivestor.ledger.errors import ConcurrentUpdateConflict, LedgerError
from aivestor.ledger.positions import (
    PositionSet,
    Transaction,
    apply_trade,
    positions_equal,
    positions_to_list,
    replay,
)
from aivestor.ledger.store import LedgerStore, PortfolioSnapshot
from aivestor.utils.logging import audit_log, current_account_id
from aivestor.utils.metrics import LEDGER_COMMIT_CONFLICTS, LEDGER_COMMIT_DURATION, TRADES_EXECUTED

logger = logging.getLogger(__name__)

DEFAULT_MAX_RETRIES = 5


@dataclass(frozen=True)
class TradeResult:
    transaction: Transaction
    positions: PositionSet


class LedgerService:
    """
    Serializes position-set mutations per account with optimistic concurrency.

    Each attempt reads the snapshot and its version, computes the next set
    with ``apply_trade`` and commits conditionally on the version. A moved
    version restarts the cycle; after ``max_retries`` attempts the trade fails
    with ConcurrentUpdateConflict. Validation and state errors abort on the
    first attempt without writing anything.
    """

    def __init__(
        self,
        store: LedgerStore,
        max_retries: int = DEFAULT_MAX_RETRIES,
        backoff_sec: float = 0.01,
    ):
        if max_retries < 1:
            raise ValueError("max_retries must be at least 1")
        self._store = store
        self._max_retries = max_retries
        self._backoff_sec = backoff_sec

    async def trade(
        self,
        account_id: str,
        symbol: object,
        side: object,
        quantity: object,
        price: object,
    ) -> TradeResult:
        token = current_account_id.set(str(account_id))
        start = time.monotonic()
        side_label = side.strip().lower() if isinstance(side, str) else ""
        if side_label not in ("buy", "sell"):
            side_label = "invalid"
        try:
            for attempt in range(1, self._max_retries + 1):
                snapshot = await self._store.load_snapshot(account_id)
                try:
                    positions, tx = apply_trade(
                        snapshot.positions, account_id, symbol, side, quantity, price,
                        timestamp=_commit_time(snapshot),
                        sequence=snapshot.version + 1,
                    )
                except LedgerError as e:
                    TRADES_EXECUTED.labels(side=side_label, outcome="rejected").inc()
                    logger.info("Trade rejected (%s): %s", e.kind, e.message, extra={"symbol": symbol})
                    raise

                if await self._store.commit_trade(snapshot, positions, tx):
                    TRADES_EXECUTED.labels(side=tx.side.value, outcome="committed").inc()
                    audit_log(
                        "trade_executed", user_id=str(account_id), account_id=str(account_id),
                        symbol=tx.symbol, side=tx.side.value, quantity=tx.quantity,
                        price=tx.price, sequence=tx.sequence,
                    )
                    return TradeResult(transaction=tx, positions=positions)

                LEDGER_COMMIT_CONFLICTS.labels(operation="trade").inc()
                logger.info(
                    "Portfolio version %d moved, retrying (attempt %d)", snapshot.version, attempt,
                    extra={"version": snapshot.version, "attempt": attempt},
                )
                await self._backoff(attempt)

            TRADES_EXECUTED.labels(side=side_label, outcome="conflict").inc()
            logger.warning("Trade gave up after %d conflicting attempts", self._max_retries)
            raise ConcurrentUpdateConflict(str(account_id), self._max_retries)
        finally:
            LEDGER_COMMIT_DURATION.labels(operation="trade").observe(time.monotonic() - start)
            current_account_id.reset(token)

    async def sync(self, account_id: str, positions: PositionSet) -> PortfolioSnapshot:
        """Overwrite the snapshot with brokerage positions and make it the replay baseline."""
        start = time.monotonic()
        try:
            for attempt in range(1, self._max_retries + 1):
                snapshot = await self._store.load_snapshot(account_id)
                synced_at = _commit_time(snapshot)
                if await self._store.commit_sync(snapshot, positions, synced_at):
                    logger.info("Portfolio synced: %d positions", len(positions))
                    return PortfolioSnapshot(
                        account_id=account_id,
                        positions=dict(positions),
                        version=snapshot.version + 1,
                        updated_at=synced_at,
                        synced_at=synced_at,
                        baseline_positions=dict(positions),
                        baseline_version=snapshot.version + 1,
                    )
                LEDGER_COMMIT_CONFLICTS.labels(operation="sync").inc()
                await self._backoff(attempt)
            raise ConcurrentUpdateConflict(str(account_id), self._max_retries)
        finally:
            LEDGER_COMMIT_DURATION.labels(operation="sync").observe(time.monotonic() - start)

    async def get_snapshot(self, account_id: str) -> PortfolioSnapshot:
        return await self._store.load_snapshot(account_id)

    async def recent_transactions(self, account_id: str, limit: int = 50) -> list[Transaction]:
        return await self._store.recent_transactions(account_id, limit)

    async def audit(self, account_id: str) -> dict:
        """Replay the transaction log from the baseline and compare with the stored set."""
        snapshot = await self._store.load_snapshot(account_id)
        transactions = await self._store.list_transactions(
            account_id, after_sequence=snapshot.baseline_version
        )
        replayed = replay(transactions, snapshot.baseline_positions)
        consistent = positions_equal(replayed, snapshot.positions)
        if not consistent:
            logger.error("Replay mismatch for account %s at version %d", account_id, snapshot.version)
        return {
            "consistent": consistent,
            "version": snapshot.version,
            "baseline_version": snapshot.baseline_version,
            "transaction_count": len(transactions),
            "stored": positions_to_list(snapshot.positions),
            "replayed": positions_to_list(replayed),
        }

    async def _backoff(self, attempt: int) -> None:
        if self._backoff_sec > 0:
            await asyncio.sleep(random.uniform(0, self._backoff_sec * attempt))
        else:
            await asyncio.sleep(0)


def _commit_time(snapshot: PortfolioSnapshot) -> datetime:
    """Wall clock, but never earlier than the previous commit of this account."""
    now = datetime.now(UTC)
    if snapshot.updated_at is not None and snapshot.updated_at > now:
        return snapshot.updated_at
    return now
