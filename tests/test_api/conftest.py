"""API test fixtures: app wired to in-memory stores, bearer tokens."""
from __future__ import annotations

import uuid

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient


@pytest_asyncio.fixture
async def app_client(ledger_store, connection_store, mock_encryption):
    """
    httpx AsyncClient against the app with services on in-memory stores.

    The lifespan does not run under ASGITransport, so services are wired
    here directly instead of onto the SQL stores.
    """
    from aivestor.main import app, init_services

    init_services(
        app,
        ledger_store=ledger_store,
        connection_store=connection_store,
        encryption=mock_encryption,
    )
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def make_token():
    """Factory for access tokens signed with the app's secret."""
    from aivestor.main import app

    def _make(uid: str | None = None, email: str = "testuser@example.com") -> str:
        return app.state.token_service.access_token(uid or str(uuid.uuid4()), email)

    return _make


@pytest.fixture
def auth_headers(app_client, make_token):
    return {"Authorization": f"Bearer {make_token('acct-1')}"}
