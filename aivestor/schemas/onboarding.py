from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from aivestor.schemas.user import UserResponse

RISK_TOLERANCE_BY_LEVEL = {"low": 0.3, "medium": 0.5, "high": 0.7}


def risk_level_to_tolerance(risk_level: str) -> float:
    """Unknown levels fall back to the medium tolerance."""
    return RISK_TOLERANCE_BY_LEVEL.get(risk_level.strip().lower(), 0.5)


class OnboardingRequest(BaseModel):
    risk_level: str = Field(min_length=1, alias="riskLevel")
    answers: list[Any] = Field(default_factory=list)
    tickers: list[str] | None = None

    model_config = {"populate_by_name": True}


class OnboardingResponse(BaseModel):
    user: UserResponse
    recommendation: Any | None = None
