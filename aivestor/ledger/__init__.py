from aivestor.ledger.positions import (
    Position,
    TradeSide,
    Transaction,
    apply_trade,
    replay,
)

__all__ = ["Position", "TradeSide", "Transaction", "apply_trade", "replay"]
