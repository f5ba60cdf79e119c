from __future__ import annotations

import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

router = APIRouter(tags=["ws"])
logger = logging.getLogger(__name__)


@router.websocket("/ws/prices")
async def price_stream(websocket: WebSocket):
    """Subscribe to demo price ticks. Client messages are ignored."""
    broadcaster = websocket.app.state.price_broadcaster
    await websocket.accept()
    broadcaster.add(websocket)
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        logger.debug("Price client disconnected")
    finally:
        broadcaster.remove(websocket)
