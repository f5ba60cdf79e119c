from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field


class NudgeCreate(BaseModel):
    message: str = Field(min_length=1)


class NudgeResponse(BaseModel):
    id: UUID
    user_id: str
    message: str
    created_at: datetime | None = None

    model_config = {"from_attributes": True}


class AlertCreate(BaseModel):
    stock_symbol: str = Field(min_length=1)
    trigger_price: float = Field(gt=0)
    message: str | None = None


class AlertResponse(BaseModel):
    id: UUID
    user_id: str
    stock_symbol: str
    trigger_price: float
    message: str
    created_at: datetime | None = None

    model_config = {"from_attributes": True}
