from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from aivestor.db.holding_repo import HoldingRepository
from aivestor.db.user_repo import UserRepository
from aivestor.dependencies import get_current_user, get_db, limiter
from aivestor.models.holding import Holding
from aivestor.schemas.holding import HoldingCreate, HoldingDeleteResponse, HoldingResponse, HoldingUpdate

router = APIRouter(prefix="/api/portfolios", tags=["portfolios"])


async def _get_holding(holding_id: UUID, session: AsyncSession) -> Holding:
    holding = await HoldingRepository(session).get_by_id(holding_id)
    if not holding:
        raise HTTPException(status_code=404, detail="Portfolio entry not found")
    return holding


@router.post("", response_model=HoldingResponse, status_code=201)
@limiter.limit("60/minute")
async def create_holding(
    body: HoldingCreate,
    request: Request,
    caller: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
):
    if not await UserRepository(session).get_by_id(body.user_id):
        raise HTTPException(status_code=404, detail="User not found")
    holding = await HoldingRepository(session).create(
        Holding(
            user_id=body.user_id,
            stock_symbol=body.stock_symbol.strip().upper(),
            quantity=body.quantity,
            purchase_price=body.purchase_price,
        )
    )
    await session.commit()
    return HoldingResponse.model_validate(holding)


@router.get("/user/{user_id}", response_model=list[HoldingResponse])
async def list_holdings(user_id: UUID, caller: dict = Depends(get_current_user), session: AsyncSession = Depends(get_db)):
    return [HoldingResponse.model_validate(h) for h in await HoldingRepository(session).list_for_user(user_id)]


@router.put("/{holding_id}", response_model=HoldingResponse)
@limiter.limit("60/minute")
async def update_holding(
    holding_id: UUID,
    body: HoldingUpdate,
    request: Request,
    caller: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
):
    holding = await _get_holding(holding_id, session)
    changes = body.model_dump(exclude_unset=True, exclude_none=True)
    if "stock_symbol" in changes:
        changes["stock_symbol"] = changes["stock_symbol"].strip().upper()
    if changes:
        holding = await HoldingRepository(session).update(holding, changes)
        await session.commit()
    return HoldingResponse.model_validate(holding)


@router.delete("/{holding_id}", response_model=HoldingDeleteResponse)
@limiter.limit("60/minute")
async def delete_holding(
    holding_id: UUID,
    request: Request,
    caller: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
):
    holding = await _get_holding(holding_id, session)
    snapshot = HoldingResponse.model_validate(holding)
    await HoldingRepository(session).delete(holding)
    await session.commit()
    return HoldingDeleteResponse(message="Portfolio entry deleted", portfolio=snapshot)
