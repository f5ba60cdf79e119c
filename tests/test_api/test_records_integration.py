"""
Users, holdings, feed and onboarding routes against the test database.

``get_db`` is overridden onto the test engine; the AI service is mocked.
"""
from __future__ import annotations

import uuid
from unittest.mock import AsyncMock, MagicMock

import pytest

from aivestor.dependencies import get_db, get_prediction_client
from aivestor.ledger.errors import CollaboratorError

EMAIL = "owner@example.com"


@pytest.fixture
def db_app_client(app_client, session_factory):
    from aivestor.main import app

    async def _get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = _get_db
    return app_client


@pytest.fixture
def owner_headers(make_token):
    return {"Authorization": f"Bearer {make_token(str(uuid.uuid4()), EMAIL)}"}


@pytest.fixture
def fake_predictions():
    from aivestor.main import app

    client = MagicMock()
    client.portfolio = AsyncMock(return_value={"weights": {"SPY": 1.0}})
    app.dependency_overrides[get_prediction_client] = lambda: client
    return client


async def _create_user(client, headers, email=EMAIL):
    resp = await client.post("/api/users", json={"email": email}, headers=headers)
    assert resp.status_code == 201
    return resp.json()


@pytest.mark.integration
class TestUsers:
    async def test_create_and_me(self, db_app_client, owner_headers):
        created = await _create_user(db_app_client, owner_headers)
        assert created["risk_tolerance"] == 0.5

        me = await db_app_client.get("/api/users/me", headers=owner_headers)
        assert me.status_code == 200
        assert me.json()["id"] == created["id"]

    async def test_duplicate_is_409(self, db_app_client, owner_headers):
        await _create_user(db_app_client, owner_headers)
        resp = await db_app_client.post("/api/users", json={"email": EMAIL}, headers=owner_headers)
        assert resp.status_code == 409

    async def test_other_users_record_is_403(self, db_app_client, owner_headers, make_token):
        created = await _create_user(db_app_client, owner_headers)
        intruder = {"Authorization": f"Bearer {make_token('x', 'intruder@example.com')}"}
        for method in ("GET", "DELETE"):
            resp = await db_app_client.request(method, f"/api/users/{created['id']}", headers=intruder)
            assert resp.status_code == 403

    async def test_update_and_delete(self, db_app_client, owner_headers):
        created = await _create_user(db_app_client, owner_headers)
        updated = await db_app_client.put(
            f"/api/users/{created['id']}", json={"risk_tolerance": 0.9}, headers=owner_headers
        )
        assert updated.json()["risk_tolerance"] == 0.9

        deleted = await db_app_client.delete(f"/api/users/{created['id']}", headers=owner_headers)
        assert deleted.json()["message"] == "User deleted"
        missing = await db_app_client.get(f"/api/users/{created['id']}", headers=owner_headers)
        assert missing.status_code == 404
        assert missing.json() == {"error": "User not found"}


@pytest.mark.integration
class TestHoldings:
    async def test_crud(self, db_app_client, owner_headers):
        user = await _create_user(db_app_client, owner_headers)
        created = await db_app_client.post(
            "/api/portfolios",
            json={"user_id": user["id"], "stock_symbol": " aapl ", "quantity": 3, "purchase_price": 150},
            headers=owner_headers,
        )
        assert created.status_code == 201
        holding = created.json()
        assert holding["stock_symbol"] == "AAPL"

        listed = await db_app_client.get(f"/api/portfolios/user/{user['id']}", headers=owner_headers)
        assert [h["id"] for h in listed.json()] == [holding["id"]]

        updated = await db_app_client.put(
            f"/api/portfolios/{holding['id']}", json={"quantity": 5}, headers=owner_headers
        )
        assert updated.json()["quantity"] == 5

        deleted = await db_app_client.delete(f"/api/portfolios/{holding['id']}", headers=owner_headers)
        assert deleted.json()["portfolio"]["id"] == holding["id"]

    async def test_missing_entry_is_404(self, db_app_client, owner_headers):
        resp = await db_app_client.put(
            f"/api/portfolios/{uuid.uuid4()}", json={"quantity": 1}, headers=owner_headers
        )
        assert resp.status_code == 404
        assert resp.json() == {"error": "Portfolio entry not found"}

    async def test_quantity_required(self, db_app_client, owner_headers):
        user = await _create_user(db_app_client, owner_headers)
        resp = await db_app_client.post(
            "/api/portfolios", json={"user_id": user["id"], "stock_symbol": "AAPL"}, headers=owner_headers
        )
        assert resp.status_code == 400


@pytest.mark.integration
class TestFeed:
    async def test_nudges_newest_first(self, db_app_client, owner_headers):
        for msg in ("first", "second"):
            resp = await db_app_client.post("/api/nudges", json={"message": msg}, headers=owner_headers)
            assert resp.status_code == 201
        listed = await db_app_client.get("/api/nudges", headers=owner_headers)
        assert [n["message"] for n in listed.json()] == ["second", "first"]

    async def test_alert_default_message(self, db_app_client, owner_headers):
        resp = await db_app_client.post(
            "/api/alerts", json={"stock_symbol": "tsla", "trigger_price": 250}, headers=owner_headers
        )
        assert resp.status_code == 201
        assert resp.json()["message"] == "Alert for TSLA at $250"


@pytest.mark.integration
class TestOnboarding:
    async def test_saves_profile_and_recommends(self, db_app_client, owner_headers, fake_predictions):
        resp = await db_app_client.post(
            "/api/onboarding", json={"riskLevel": "High", "answers": [1, 2, 3]}, headers=owner_headers
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["user"]["risk_tolerance"] == 0.7
        assert body["user"]["risk_profile"]["questionCount"] == 3
        assert body["recommendation"] == {"weights": {"SPY": 1.0}}
        tickers, risk = fake_predictions.portfolio.call_args.args
        assert tickers == ["SPY", "QQQ", "VTI", "VXUS", "BND"]
        assert risk == "high"

    async def test_ai_failure_still_saves(self, db_app_client, owner_headers, fake_predictions):
        fake_predictions.portfolio.side_effect = CollaboratorError("AI service error: down")
        resp = await db_app_client.post("/api/onboarding", json={"riskLevel": "low"}, headers=owner_headers)
        assert resp.status_code == 200
        assert resp.json()["recommendation"] is None
        assert resp.json()["user"]["risk_tolerance"] == 0.3
