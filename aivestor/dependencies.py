from fastapi import Depends, HTTPException, Request
from slowapi import Limiter
from slowapi.util import get_remote_address
from sqlalchemy.ext.asyncio import AsyncSession

from aivestor.config import GlobalConfig
from aivestor.db.session import get_session

limiter = Limiter(key_func=get_remote_address, enabled=GlobalConfig().rate_limit_enabled)


async def get_db(session: AsyncSession = Depends(get_session)):
    """DB session dependency."""
    yield session


async def get_current_user(request: Request) -> dict:
    """Claims injected by AuthMiddleware. 401 when absent."""
    user = getattr(request.state, "user", None)
    if not user:
        raise HTTPException(status_code=401, detail="Access denied, no token provided")
    return user


async def get_account_id(user: dict = Depends(get_current_user)) -> str:
    """The ledger account of the caller is its user id."""
    return user["uid"]


def get_ledger_service(request: Request):
    return request.app.state.ledger_service


def get_brokerage_service(request: Request):
    return request.app.state.brokerage_service


def get_auth_service(request: Request):
    return request.app.state.auth_service


def get_token_service(request: Request):
    return request.app.state.token_service


def get_prediction_client(request: Request):
    return request.app.state.prediction_client
