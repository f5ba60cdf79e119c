"""Position ledger: a pure fold of trades over a symbol-keyed position set.

``apply_trade`` never mutates its input. The position set of an account is
always ``replay(all transactions)`` from the last sync baseline.
"""
from __future__ import annotations

import math
import uuid
from collections.abc import Iterable, Mapping
from dataclasses import asdict, dataclass, field, replace
from datetime import UTC, datetime
from enum import StrEnum

from aivestor.ledger.errors import (
    InsufficientShares,
    InvalidPrice,
    InvalidQuantity,
    InvalidSymbol,
    InvalidTradeSide,
)

# Float residue below this is treated as a closed position
QTY_EPSILON = 1e-9


class TradeSide(StrEnum):
    BUY = "buy"
    SELL = "sell"


@dataclass(frozen=True)
class Position:
    symbol: str
    quantity: float
    average_cost: float
    last_price: float

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping) -> Position:
        return cls(
            symbol=str(data["symbol"]).upper(),
            quantity=float(data["quantity"]),
            average_cost=float(data["average_cost"]),
            last_price=float(data.get("last_price") or data["average_cost"]),
        )


@dataclass(frozen=True)
class Transaction:
    account_id: str
    symbol: str
    side: TradeSide
    quantity: float
    price: float
    total: float
    timestamp: datetime
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    sequence: int = 0

    def to_dict(self) -> dict:
        data = asdict(self)
        data["side"] = self.side.value
        return data


PositionSet = dict[str, Position]


def positions_to_list(positions: Mapping[str, Position]) -> list[dict]:
    """Serialize to the ordered list stored in the portfolio document."""
    return [p.to_dict() for p in positions.values()]


def positions_from_list(rows: Iterable[Mapping] | None) -> PositionSet:
    """Inverse of positions_to_list. Only empty rows are dropped; any
    positive quantity a trade could have produced is kept."""
    result: PositionSet = {}
    for row in rows or []:
        pos = Position.from_dict(row)
        if pos.quantity > 0:
            result[pos.symbol] = pos
    return result


# ---------------------------------------------------------------------------
# Input normalization
# ---------------------------------------------------------------------------

def normalize_symbol(symbol: object) -> str:
    if not isinstance(symbol, str) or not symbol.strip():
        raise InvalidSymbol("symbol is required")
    return symbol.strip().upper()


def normalize_side(side: object) -> TradeSide:
    if isinstance(side, str):
        try:
            return TradeSide(side.strip().lower())
        except ValueError:
            pass
    raise InvalidTradeSide("type must be buy or sell")


def _positive_finite(value: object) -> float | None:
    if isinstance(value, bool):
        return None
    try:
        number = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number) or number <= 0:
        return None
    return number


def normalize_quantity(quantity: object) -> float:
    number = _positive_finite(quantity)
    if number is None:
        raise InvalidQuantity("quantity must be a positive number")
    return number


def normalize_price(price: object) -> float:
    number = _positive_finite(price)
    if number is None:
        raise InvalidPrice("price must be a positive number")
    return number


# ---------------------------------------------------------------------------
# Fold
# ---------------------------------------------------------------------------

def apply_trade(
    current: Mapping[str, Position],
    account_id: str,
    symbol: object,
    side: object,
    quantity: object,
    price: object,
    *,
    timestamp: datetime | None = None,
    sequence: int = 0,
    transaction_id: str | None = None,
) -> tuple[PositionSet, Transaction]:
    """Apply one buy/sell to ``current`` and return ``(new_positions, transaction)``.

    Raises a ValidationError subclass for malformed input and
    InsufficientShares when selling more than is held. Nothing is returned
    (and nothing changes) on failure.
    """
    sym = normalize_symbol(symbol)
    trade_side = normalize_side(side)
    qty = normalize_quantity(quantity)
    px = normalize_price(price)

    positions: PositionSet = dict(current)
    existing = positions.get(sym)

    if trade_side is TradeSide.BUY:
        if existing is None:
            positions[sym] = Position(sym, qty, px, px)
        else:
            new_qty = existing.quantity + qty
            new_avg = (existing.average_cost * existing.quantity + px * qty) / new_qty
            positions[sym] = Position(sym, new_qty, new_avg, px)
    else:
        held = existing.quantity if existing is not None else 0.0
        if existing is None or qty - held > QTY_EPSILON:
            raise InsufficientShares(sym, held, qty)
        remaining = held - qty
        if remaining <= QTY_EPSILON:
            del positions[sym]
        else:
            positions[sym] = replace(existing, quantity=remaining, last_price=px)

    tx = Transaction(
        account_id=str(account_id),
        symbol=sym,
        side=trade_side,
        quantity=qty,
        price=px,
        total=qty * px,
        timestamp=timestamp or datetime.now(UTC),
        sequence=sequence,
    )
    if transaction_id is not None:
        tx = replace(tx, id=transaction_id)
    return positions, tx


def replay(
    transactions: Iterable[Transaction],
    baseline: Mapping[str, Position] | None = None,
) -> PositionSet:
    """Fold transactions (in sequence order) over ``baseline``."""
    positions: PositionSet = dict(baseline or {})
    for tx in sorted(transactions, key=lambda t: t.sequence):
        positions, _ = apply_trade(
            positions, tx.account_id, tx.symbol, tx.side, tx.quantity, tx.price,
            timestamp=tx.timestamp, sequence=tx.sequence,
        )
    return positions


def positions_equal(a: Mapping[str, Position], b: Mapping[str, Position]) -> bool:
    """Exact comparison ignoring insertion order."""
    return dict(a) == dict(b)
