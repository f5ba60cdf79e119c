"""Nudges and price alerts: per-user feeds, newest first."""
from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from aivestor.db.feed_repo import AlertRepository, NudgeRepository
from aivestor.dependencies import get_account_id, get_db, limiter
from aivestor.models.alert import PriceAlert
from aivestor.models.nudge import Nudge
from aivestor.schemas.feed import AlertCreate, AlertResponse, NudgeCreate, NudgeResponse

router = APIRouter(prefix="/api", tags=["feed"])


@router.get("/nudges", response_model=list[NudgeResponse])
async def list_nudges(uid: str = Depends(get_account_id), session: AsyncSession = Depends(get_db)):
    return [NudgeResponse.model_validate(n) for n in await NudgeRepository(session).latest_for_user(uid)]


@router.post("/nudges", response_model=NudgeResponse, status_code=201)
@limiter.limit("60/minute")
async def create_nudge(
    body: NudgeCreate,
    request: Request,
    uid: str = Depends(get_account_id),
    session: AsyncSession = Depends(get_db),
):
    nudge = await NudgeRepository(session).create(Nudge(user_id=uid, message=body.message))
    await session.commit()
    return NudgeResponse.model_validate(nudge)


@router.get("/alerts", response_model=list[AlertResponse])
async def list_alerts(uid: str = Depends(get_account_id), session: AsyncSession = Depends(get_db)):
    return [AlertResponse.model_validate(a) for a in await AlertRepository(session).latest_for_user(uid)]


@router.post("/alerts", response_model=AlertResponse, status_code=201)
@limiter.limit("60/minute")
async def create_alert(
    body: AlertCreate,
    request: Request,
    uid: str = Depends(get_account_id),
    session: AsyncSession = Depends(get_db),
):
    symbol = body.stock_symbol.strip().upper()
    alert = await AlertRepository(session).create(
        PriceAlert(
            user_id=uid,
            stock_symbol=symbol,
            trigger_price=body.trigger_price,
            message=body.message or f"Alert for {symbol} at ${body.trigger_price:g}",
        )
    )
    await session.commit()
    return AlertResponse.model_validate(alert)
