from __future__ import annotations

from pydantic import BaseModel, Field


class PortfolioRecommendationRequest(BaseModel):
    tickers: list[str] = Field(min_length=1)
    risk_tolerance: str | float
