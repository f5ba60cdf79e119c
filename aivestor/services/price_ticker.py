"""Demo price feed: a lazy tick stream and a WebSocket fan-out."""
from __future__ import annotations

import asyncio
import json
import logging
import random
import time
from collections.abc import AsyncIterator, Mapping
from datetime import UTC, datetime

from aivestor.utils.metrics import PRICE_TICKS_BROADCAST, WS_CLIENTS

logger = logging.getLogger(__name__)

MIN_PRICE = 0.01
MAX_STEP_PCT = 0.02
DEFAULT_SEED_PRICE = 100.0
# Ticks missing for this many intervals mark the feed stalled
STALL_INTERVALS = 3


async def price_ticks(
    symbols: list[str],
    interval: float,
    seed_prices: Mapping[str, float] | None = None,
    rng: random.Random | None = None,
) -> AsyncIterator[list[dict]]:
    """
    Yield one batch of ``{symbol, price, change, timestamp}`` every ``interval``
    seconds, forever. Each price moves by at most MAX_STEP_PCT per tick and
    never drops below MIN_PRICE.
    """
    rng = rng or random.Random()
    seed_prices = seed_prices or {}
    prices = {s: float(seed_prices.get(s, DEFAULT_SEED_PRICE)) for s in symbols}

    while True:
        await asyncio.sleep(interval)
        now = datetime.now(UTC).isoformat()
        batch = []
        for symbol in symbols:
            old = prices[symbol]
            new = max(MIN_PRICE, old * (1 + rng.uniform(-MAX_STEP_PCT, MAX_STEP_PCT)))
            prices[symbol] = new
            batch.append({
                "symbol": symbol,
                "price": round(new, 2),
                "change": round(new - old, 2),
                "timestamp": now,
            })
        yield batch


class PriceBroadcaster:
    """Pushes every tick batch to all connected WebSocket clients."""

    def __init__(self, ticks: AsyncIterator[list[dict]], interval: float | None = None):
        self._ticks = ticks
        self._interval = interval
        self._clients: set = set()
        self._started_at: float | None = None
        self.error: str | None = None
        self.last_tick_at: float | None = None

    @property
    def running(self) -> bool:
        return self._started_at is not None

    def status(self, now: float | None = None) -> dict:
        """Client count and tick freshness for the health endpoint."""
        now = time.monotonic() if now is None else now
        last = self.last_tick_at or self._started_at
        age = round(now - last, 1) if last is not None else None
        stalled = bool(
            self.running and self._interval and age is not None
            and age > STALL_INTERVALS * self._interval
        )
        return {
            "clients": self.client_count,
            "running": self.running,
            "last_tick_age_sec": age,
            "stalled": stalled,
            "error": self.error,
        }

    @property
    def client_count(self) -> int:
        return len(self._clients)

    def add(self, websocket) -> None:
        self._clients.add(websocket)
        WS_CLIENTS.set(len(self._clients))

    def remove(self, websocket) -> None:
        self._clients.discard(websocket)
        WS_CLIENTS.set(len(self._clients))

    async def broadcast(self, batch: list[dict]) -> None:
        message = json.dumps({"type": "prices", "data": batch})
        for ws in list(self._clients):
            try:
                await ws.send_text(message)
            except Exception as e:  # client went away mid-send
                logger.debug("Dropping price client: %s", e)
                self.remove(ws)
        PRICE_TICKS_BROADCAST.inc()

    async def run(self) -> None:
        logger.info("Price broadcaster started")
        self._started_at = time.monotonic()
        try:
            async for batch in self._ticks:
                self.last_tick_at = time.monotonic()
                if self._clients:
                    await self.broadcast(batch)
        except asyncio.CancelledError:
            logger.info("Price broadcaster stopped")
            raise
        except Exception as e:
            logger.exception("Price broadcaster crashed")
            self.error = str(e)
            raise
        finally:
            self._started_at = None
