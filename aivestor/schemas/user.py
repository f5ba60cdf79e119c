from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field


class UserResponse(BaseModel):
    id: UUID
    email: str
    risk_tolerance: float
    risk_level: str | None = None
    risk_profile: dict[str, Any] | None = None
    risk_answers: list[Any] | None = None
    email_verified: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}


class UserCreate(BaseModel):
    email: str = Field(min_length=1)
    risk_tolerance: float | None = Field(default=None, ge=0, le=1)


class UserUpdate(BaseModel):
    email: str | None = Field(default=None, min_length=1)
    risk_tolerance: float | None = Field(default=None, ge=0, le=1)


class UserDeleteResponse(BaseModel):
    message: str
    user: UserResponse
