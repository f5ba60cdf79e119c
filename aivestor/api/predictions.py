"""Public proxy to the AI prediction service."""
from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from aivestor.dependencies import get_prediction_client, limiter
from aivestor.schemas.prediction import PortfolioRecommendationRequest
from aivestor.services.prediction_client import PredictionClient

router = APIRouter(prefix="/api", tags=["predictions"])


@router.get("/predict/{ticker}")
@limiter.limit("30/minute")
async def predict(ticker: str, request: Request, predictions: PredictionClient = Depends(get_prediction_client)):
    return await predictions.predict(ticker.strip().upper())


@router.post("/portfolio")
@limiter.limit("30/minute")
async def portfolio_recommendation(
    body: PortfolioRecommendationRequest,
    request: Request,
    predictions: PredictionClient = Depends(get_prediction_client),
):
    return await predictions.portfolio(body.tickers, body.risk_tolerance)
