from __future__ import annotations

import logging
import time

from fastapi import APIRouter, Request
from sqlalchemy import text

from aivestor.db.session import engine

router = APIRouter(tags=["system"])
logger = logging.getLogger(__name__)

_start_time = time.monotonic()

VERSION = "0.1.0"


@router.get("/health")
@router.get("/healthz")
async def health_check(request: Request):
    """
    Liveness for load balancers and the mobile client.

    ``unhealthy`` when the portfolio store is unreachable (trades cannot
    commit); ``degraded`` when only the demo price feed is stalled or crashed.
    """
    db_check = await _check_database()

    broadcaster = getattr(request.app.state, "price_broadcaster", None)
    price_feed = broadcaster.status() if broadcaster is not None else {}

    alerts = []
    if db_check["status"] != "ok":
        alerts.append("database_unreachable")
    if price_feed.get("error"):
        alerts.append("price_feed_failed")
    elif price_feed.get("stalled"):
        alerts.append("price_feed_stalled")

    if "database_unreachable" in alerts:
        overall = "unhealthy"
    elif alerts:
        overall = "degraded"
    else:
        overall = "healthy"

    return {
        "status": overall,
        "ok": overall == "healthy",
        "version": VERSION,
        "uptime_seconds": round(time.monotonic() - _start_time, 1),
        "checks": {
            "database": db_check,
            "price_feed": price_feed,
        },
        "alerts": alerts,
    }


async def _check_database() -> dict:
    try:
        start = time.monotonic()
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return {"status": "ok", "latency_ms": round((time.monotonic() - start) * 1000, 1)}
    except Exception as e:
        logger.error("Database health check failed: %s", e)
        return {"status": "error", "error": str(e)}
