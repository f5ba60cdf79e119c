from __future__ import annotations

import logging
from datetime import UTC, datetime, timedelta

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from aivestor.config import GlobalConfig
from aivestor.db.user_repo import UserRepository
from aivestor.dependencies import get_current_user, get_db, get_prediction_client, limiter
from aivestor.ledger.errors import CollaboratorError
from aivestor.schemas.onboarding import OnboardingRequest, OnboardingResponse, risk_level_to_tolerance
from aivestor.schemas.user import UserResponse
from aivestor.services.prediction_client import PredictionClient
from aivestor.utils.logging import audit_log

router = APIRouter(prefix="/api", tags=["onboarding"])
logger = logging.getLogger(__name__)
settings = GlobalConfig()

ONBOARDING_TOKEN_TTL = timedelta(minutes=15)


@router.post("/onboarding", response_model=OnboardingResponse)
@limiter.limit("10/minute")
async def onboarding(
    body: OnboardingRequest,
    request: Request,
    caller: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
    predictions: PredictionClient = Depends(get_prediction_client),
):
    email = caller.get("email")
    if not email:
        raise HTTPException(status_code=400, detail="Email not found")

    repo = UserRepository(session)
    user = await repo.ensure(email, risk_level=body.risk_level)
    user = await repo.update(user, {
        "risk_tolerance": risk_level_to_tolerance(body.risk_level),
        "risk_level": body.risk_level,
        "risk_profile": {
            "riskLevel": body.risk_level,
            "answeredAt": datetime.now(UTC).isoformat(),
            "questionCount": len(body.answers),
        },
        "risk_answers": body.answers,
    })
    await session.commit()
    audit_log("onboarding_completed", user_id=caller["uid"], risk_level=body.risk_level)

    # Recommendation is best-effort: the profile is saved either way
    recommendation = None
    try:
        recommendation = await predictions.portfolio(
            body.tickers or settings.onboarding_ticker_list,
            body.risk_level.lower(),
            token_ttl=ONBOARDING_TOKEN_TTL,
        )
    except CollaboratorError as e:
        logger.warning("Onboarding portfolio recommendation failed: %s", e.message)

    return OnboardingResponse(user=UserResponse.model_validate(user), recommendation=recommendation)
