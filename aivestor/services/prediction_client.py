"""
Client for the external AI prediction service.

Every call is signed with a short-lived service JWT. Transport errors,
timeouts and non-2xx answers surface as CollaboratorError (HTTP 503).
"""
from __future__ import annotations

import logging
import time
from datetime import timedelta
from typing import Any

import httpx

from aivestor.ledger.errors import CollaboratorError
from aivestor.services.token_service import TokenService
from aivestor.utils.metrics import AI_SERVICE_DURATION, AI_SERVICE_ERRORS

logger = logging.getLogger(__name__)


class PredictionClient:
    def __init__(self, base_url: str, tokens: TokenService, timeout: float = 10.0):
        self._base_url = base_url.rstrip("/")
        self._tokens = tokens
        self._timeout = timeout

    async def predict(self, ticker: str) -> Any:
        return await self._request("predict", "GET", f"/predict/{ticker}")

    async def portfolio(
        self,
        tickers: list[str],
        risk_tolerance: Any,
        token_ttl: timedelta = timedelta(hours=1),
    ) -> Any:
        return await self._request(
            "portfolio", "POST", "/portfolio",
            json={"tickers": tickers, "risk_tolerance": risk_tolerance},
            token_ttl=token_ttl,
        )

    async def _request(
        self,
        endpoint: str,
        method: str,
        path: str,
        json: dict | None = None,
        token_ttl: timedelta = timedelta(hours=1),
    ) -> Any:
        headers = {"Authorization": f"Bearer {self._tokens.service_token(token_ttl)}"}
        start = time.monotonic()
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                if method == "GET":
                    resp = await client.get(f"{self._base_url}{path}", headers=headers)
                else:
                    resp = await client.post(f"{self._base_url}{path}", headers=headers, json=json)
        except httpx.HTTPError as e:
            AI_SERVICE_ERRORS.labels(endpoint=endpoint).inc()
            logger.error("AI service %s failed: %s", endpoint, e, extra={"endpoint": endpoint})
            raise CollaboratorError(f"AI service error: {e}") from e
        finally:
            AI_SERVICE_DURATION.labels(endpoint=endpoint).observe(time.monotonic() - start)

        if resp.status_code >= 400:
            AI_SERVICE_ERRORS.labels(endpoint=endpoint).inc()
            logger.error(
                "AI service %s returned %d: %s", endpoint, resp.status_code, resp.text[:100],
                extra={"endpoint": endpoint},
            )
            raise CollaboratorError(f"AI service error: status {resp.status_code}")
        return resp.json()
