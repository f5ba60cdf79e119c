"""Ledger error taxonomy.

Every error carries a stable machine-readable ``kind`` and the HTTP status the
API layer maps it to. Validation and state errors are raised before any state
is written and are never retried.
"""
from __future__ import annotations


class LedgerError(Exception):
    kind = "ledger_error"
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"error": self.message, "kind": self.kind}


# ---- ValidationError: malformed input ----

class ValidationError(LedgerError):
    kind = "validation_error"
    status_code = 400


class InvalidSymbol(ValidationError):
    kind = "invalid_symbol"


class InvalidTradeSide(ValidationError):
    kind = "invalid_trade_side"


class InvalidQuantity(ValidationError):
    kind = "invalid_quantity"


class InvalidPrice(ValidationError):
    kind = "invalid_price"


# ---- StateError: request is well-formed but the current state forbids it ----

class StateError(LedgerError):
    kind = "state_error"
    status_code = 400


class InsufficientShares(StateError):
    kind = "insufficient_shares"

    def __init__(self, symbol: str, held: float, requested: float):
        if held <= 0:
            message = f"No position in {symbol}"
        else:
            message = f"Insufficient shares (have {held:g})"
        super().__init__(message)
        self.symbol = symbol
        self.held = held
        self.requested = requested

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["held"] = self.held
        return data


class NoActiveConnection(StateError):
    kind = "no_active_connection"

    def __init__(self, message: str = "No connected brokerage"):
        super().__init__(message)


class ConnectionNotFound(StateError):
    kind = "connection_not_found"
    status_code = 404

    def __init__(self, message: str = "Connection not found"):
        super().__init__(message)


# ---- ConcurrencyError: lost-update conflict after retry exhaustion ----

class ConcurrencyError(LedgerError):
    kind = "concurrency_error"
    status_code = 409


class ConcurrentUpdateConflict(ConcurrencyError):
    kind = "concurrent_update_conflict"

    def __init__(self, account_id: str, attempts: int):
        super().__init__(
            f"Portfolio for account {account_id} changed concurrently; "
            f"gave up after {attempts} attempts"
        )
        self.account_id = account_id
        self.attempts = attempts


# ---- CollaboratorError: durable store / identity provider / AI service ----

class CollaboratorError(LedgerError):
    kind = "collaborator_unavailable"
    status_code = 503
