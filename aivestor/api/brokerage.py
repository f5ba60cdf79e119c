from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Request, Response

from aivestor.dependencies import get_account_id, get_brokerage_service, get_ledger_service, limiter
from aivestor.ledger.positions import PositionSet
from aivestor.schemas.brokerage import (
    AuditResponse,
    ConnectionResponse,
    ConnectRequest,
    DisconnectRequest,
    PositionResponse,
    PositionsResponse,
    SyncResponse,
    TradeRequest,
    TradeResponse,
    TransactionResponse,
)
from aivestor.services.brokerage_service import BrokerageService
from aivestor.services.ledger_service import LedgerService

router = APIRouter(prefix="/api/brokerage", tags=["brokerage"])

MAX_TRANSACTIONS_LIMIT = 500


def _positions(positions: PositionSet) -> list[PositionResponse]:
    return [PositionResponse(**p.to_dict()) for p in positions.values()]


def _connection(svc: BrokerageService, conn, message: str | None = None) -> ConnectionResponse:
    return ConnectionResponse(
        id=conn.id,
        broker_name=conn.broker_name,
        status=conn.status,
        credential=svc.masked_credential(conn),
        connected_at=conn.connected_at,
        disconnected_at=conn.disconnected_at,
        message=message,
    )


@router.post("/trade", response_model=TradeResponse, status_code=201)
@limiter.limit("60/minute")
async def trade(
    body: TradeRequest,
    request: Request,
    account_id: str = Depends(get_account_id),
    ledger: LedgerService = Depends(get_ledger_service),
):
    result = await ledger.trade(account_id, body.symbol, body.side, body.quantity, body.price)
    return TradeResponse(
        transaction=TransactionResponse(**result.transaction.to_dict()),
        positions=_positions(result.positions),
    )


@router.post("/connect", response_model=ConnectionResponse, status_code=201)
@limiter.limit("30/minute")
async def connect(
    body: ConnectRequest,
    request: Request,
    response: Response,
    account_id: str = Depends(get_account_id),
    svc: BrokerageService = Depends(get_brokerage_service),
):
    result = await svc.connect(account_id, body.broker_name, body.credential_ref)
    if not result.created:
        response.status_code = 200
    return _connection(svc, result.connection, "Connected" if result.created else "Reconnected")


@router.delete("/disconnect")
@limiter.limit("30/minute")
async def disconnect(
    body: DisconnectRequest,
    request: Request,
    account_id: str = Depends(get_account_id),
    svc: BrokerageService = Depends(get_brokerage_service),
):
    conn = await svc.disconnect(account_id, body.broker_name)
    return {"message": f"Disconnected from {conn.broker_name}"}


@router.post("/sync", response_model=SyncResponse)
@limiter.limit("10/minute")
async def sync(
    request: Request,
    account_id: str = Depends(get_account_id),
    svc: BrokerageService = Depends(get_brokerage_service),
):
    snapshot = await svc.sync(account_id)
    return SyncResponse(message="Portfolio synced", positions=_positions(snapshot.positions))


@router.get("/status", response_model=list[ConnectionResponse])
async def status(
    account_id: str = Depends(get_account_id),
    svc: BrokerageService = Depends(get_brokerage_service),
):
    return [_connection(svc, c) for c in await svc.list_connections(account_id)]


@router.get("/positions", response_model=PositionsResponse)
async def positions(
    account_id: str = Depends(get_account_id),
    ledger: LedgerService = Depends(get_ledger_service),
):
    snapshot = await ledger.get_snapshot(account_id)
    return PositionsResponse(
        account_id=account_id,
        version=snapshot.version,
        positions=_positions(snapshot.positions),
        updated_at=snapshot.updated_at,
        synced_at=snapshot.synced_at,
    )


@router.get("/transactions", response_model=list[TransactionResponse])
async def transactions(
    limit: int = Query(50, ge=1, le=MAX_TRANSACTIONS_LIMIT),
    account_id: str = Depends(get_account_id),
    ledger: LedgerService = Depends(get_ledger_service),
):
    rows = await ledger.recent_transactions(account_id, limit)
    return [TransactionResponse(**tx.to_dict()) for tx in rows]


@router.get("/audit", response_model=AuditResponse)
async def audit(
    account_id: str = Depends(get_account_id),
    ledger: LedgerService = Depends(get_ledger_service),
):
    return AuditResponse(**await ledger.audit(account_id))
