from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from aivestor.db.user_repo import UserRepository
from aivestor.dependencies import get_current_user, get_db, limiter
from aivestor.models.user import User
from aivestor.schemas.user import UserCreate, UserDeleteResponse, UserResponse, UserUpdate
from aivestor.utils.logging import audit_log

router = APIRouter(prefix="/api/users", tags=["users"])


async def _owned_user(user_id: UUID, caller: dict, session: AsyncSession) -> User:
    """User row by id; 404 when missing, 403 when it belongs to another e-mail."""
    user = await UserRepository(session).get_by_id(user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    if caller.get("email") and user.email != caller["email"]:
        raise HTTPException(status_code=403, detail="Forbidden")
    return user


@router.post("", response_model=UserResponse, status_code=201)
@limiter.limit("30/minute")
async def create_user(
    body: UserCreate,
    request: Request,
    caller: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
):
    repo = UserRepository(session)
    if await repo.get_by_email(body.email):
        raise HTTPException(status_code=409, detail="Email is already registered")
    user = await repo.create(
        User(email=body.email, risk_tolerance=body.risk_tolerance if body.risk_tolerance is not None else 0.5)
    )
    await session.commit()
    audit_log("user_created", user_id=caller["uid"], created_user=str(user.id))
    return UserResponse.model_validate(user)


@router.get("", response_model=list[UserResponse])
async def list_users(caller: dict = Depends(get_current_user), session: AsyncSession = Depends(get_db)):
    return [UserResponse.model_validate(u) for u in await UserRepository(session).list_all()]


@router.get("/me", response_model=UserResponse)
async def me(caller: dict = Depends(get_current_user), session: AsyncSession = Depends(get_db)):
    user = await UserRepository(session).get_by_email(caller.get("email") or "")
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return UserResponse.model_validate(user)


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(user_id: UUID, caller: dict = Depends(get_current_user), session: AsyncSession = Depends(get_db)):
    return UserResponse.model_validate(await _owned_user(user_id, caller, session))


@router.put("/{user_id}", response_model=UserResponse)
@limiter.limit("30/minute")
async def update_user(
    user_id: UUID,
    body: UserUpdate,
    request: Request,
    caller: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
):
    user = await _owned_user(user_id, caller, session)
    changes = body.model_dump(exclude_unset=True, exclude_none=True)
    if changes:
        user = await UserRepository(session).update(user, changes)
        await session.commit()
    audit_log("user_updated", user_id=caller["uid"], changed_fields=list(changes))
    return UserResponse.model_validate(user)


@router.delete("/{user_id}", response_model=UserDeleteResponse)
@limiter.limit("10/minute")
async def delete_user(
    user_id: UUID,
    request: Request,
    caller: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
):
    user = await _owned_user(user_id, caller, session)
    snapshot = UserResponse.model_validate(user)
    await UserRepository(session).delete(user)
    await session.commit()
    audit_log("user_deleted", user_id=caller["uid"], deleted_user=str(user_id))
    return UserDeleteResponse(message="User deleted", user=snapshot)
