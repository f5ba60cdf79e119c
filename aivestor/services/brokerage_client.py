from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from aivestor.ledger.positions import Position, PositionSet

# Holdings reported by the simulated brokerage on every sync
MOCK_BROKERAGE_PORTFOLIO: list[dict] = [
    {"symbol": "AAPL", "quantity": 15, "average_cost": 175.50, "last_price": 182.30},
    {"symbol": "MSFT", "quantity": 10, "average_cost": 340.00, "last_price": 365.20},
    {"symbol": "GOOGL", "quantity": 8, "average_cost": 140.00, "last_price": 148.75},
    {"symbol": "NVDA", "quantity": 5, "average_cost": 450.00, "last_price": 892.11},
    {"symbol": "AMZN", "quantity": 12, "average_cost": 155.00, "last_price": 178.45},
]


class BrokerageClient(ABC):
    """Async interface to a brokerage's position sync primitive."""

    @abstractmethod
    async def fetch_positions(self, connection: Any, credential: str | None) -> PositionSet: ...


class MockBrokerageClient(BrokerageClient):
    """Returns a fixed portfolio for any connection."""

    def __init__(self, portfolio: list[dict] | None = None):
        self._portfolio = portfolio if portfolio is not None else MOCK_BROKERAGE_PORTFOLIO

    async def fetch_positions(self, connection: Any, credential: str | None) -> PositionSet:
        positions: PositionSet = {}
        for row in self._portfolio:
            pos = Position.from_dict(row)
            positions[pos.symbol] = pos
        return positions
