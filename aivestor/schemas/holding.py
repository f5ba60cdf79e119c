from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field


class HoldingCreate(BaseModel):
    user_id: UUID
    stock_symbol: str = Field(min_length=1)
    quantity: float = Field(gt=0)
    purchase_price: float = Field(default=0, ge=0)


class HoldingUpdate(BaseModel):
    stock_symbol: str | None = Field(default=None, min_length=1)
    quantity: float | None = Field(default=None, gt=0)
    purchase_price: float | None = Field(default=None, ge=0)


class HoldingResponse(BaseModel):
    id: UUID
    user_id: UUID
    stock_symbol: str
    quantity: float
    purchase_price: float
    created_at: datetime | None = None

    model_config = {"from_attributes": True}


class HoldingDeleteResponse(BaseModel):
    message: str
    portfolio: HoldingResponse
