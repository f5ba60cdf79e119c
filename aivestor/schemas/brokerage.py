"""Request/response models for the brokerage simulator routes.

Trade fields stay loosely typed: the position ledger owns their
validation and reports each failure with its own error kind.
"""
from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import AliasChoices, BaseModel, Field


class TradeRequest(BaseModel):
    symbol: Any = None
    side: Any = Field(default=None, validation_alias=AliasChoices("side", "type"))
    quantity: Any = None
    price: Any = None


class ConnectRequest(BaseModel):
    broker_name: str = Field(min_length=1, validation_alias=AliasChoices("brokerName", "broker_name"))
    credential_ref: str | None = Field(
        default=None, validation_alias=AliasChoices("credentialRef", "apiKey", "credential_ref")
    )


class DisconnectRequest(BaseModel):
    broker_name: str = Field(min_length=1, validation_alias=AliasChoices("brokerName", "broker_name"))


class PositionResponse(BaseModel):
    symbol: str
    quantity: float
    average_cost: float
    last_price: float


class TransactionResponse(BaseModel):
    id: str
    account_id: str
    sequence: int
    symbol: str
    side: str
    quantity: float
    price: float
    total: float
    timestamp: datetime


class TradeResponse(BaseModel):
    transaction: TransactionResponse
    positions: list[PositionResponse]


class ConnectionResponse(BaseModel):
    id: UUID
    broker_name: str
    status: str
    credential: str | None = None
    connected_at: datetime | None = None
    disconnected_at: datetime | None = None
    message: str | None = None


class PositionsResponse(BaseModel):
    account_id: str
    version: int
    positions: list[PositionResponse]
    updated_at: datetime | None = None
    synced_at: datetime | None = None


class SyncResponse(BaseModel):
    message: str
    positions: list[PositionResponse]


class AuditResponse(BaseModel):
    consistent: bool
    version: int
    baseline_version: int
    transaction_count: int
    stored: list[PositionResponse]
    replayed: list[PositionResponse]
