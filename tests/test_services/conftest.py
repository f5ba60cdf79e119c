"""Service-layer test fixtures."""
from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from aivestor.ledger.mem_store import InMemoryLedgerStore


class AlwaysStaleLedgerStore(InMemoryLedgerStore):
    """Every conditional commit loses, as if another writer always got there first."""

    def __init__(self) -> None:
        super().__init__()
        self.commit_attempts = 0

    async def commit_trade(self, snapshot, positions, transaction):
        self.commit_attempts += 1
        return False

    async def commit_sync(self, snapshot, positions, synced_at):
        self.commit_attempts += 1
        return False


@pytest.fixture
def stale_store():
    return AlwaysStaleLedgerStore()


def _mock_httpx_client(response=None, error: Exception | None = None):
    """httpx.AsyncClient stand-in usable as ``async with``."""
    client = AsyncMock()
    client.__aenter__ = AsyncMock(return_value=client)
    client.__aexit__ = AsyncMock(return_value=False)
    for verb in ("get", "post"):
        if error is not None:
            setattr(client, verb, AsyncMock(side_effect=error))
        else:
            setattr(client, verb, AsyncMock(return_value=response))
    return client


def _mock_response(status_code: int = 200, payload=None):
    resp = MagicMock()
    resp.status_code = status_code
    resp.json.return_value = payload if payload is not None else {}
    resp.text = str(payload)
    return resp


@pytest.fixture
def mock_httpx_client():
    return _mock_httpx_client


@pytest.fixture
def mock_response():
    return _mock_response
