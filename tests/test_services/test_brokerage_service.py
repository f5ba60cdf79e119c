"""BrokerageService: connect/disconnect/sync over the in-memory stores."""
from __future__ import annotations

import pytest

from aivestor.ledger.errors import ConnectionNotFound, NoActiveConnection, StateError, ValidationError
from aivestor.services.brokerage_client import MOCK_BROKERAGE_PORTFOLIO

ACCOUNT = "acct-1"


@pytest.mark.unit
class TestConnect:
    async def test_connect_creates_then_reconnects(self, brokerage_service):
        first = await brokerage_service.connect(ACCOUNT, "Robinhood", "rh-secret-key")
        assert first.created is True
        second = await brokerage_service.connect(ACCOUNT, "Robinhood")
        assert second.created is False
        assert second.connection.id == first.connection.id
        assert len(await brokerage_service.list_connections(ACCOUNT)) == 1

    async def test_blank_broker_rejected(self, brokerage_service):
        with pytest.raises(ValidationError) as exc:
            await brokerage_service.connect(ACCOUNT, "  ")
        assert exc.value.message == "brokerName is required"

    async def test_credential_encrypted_and_masked(self, brokerage_service, connection_store):
        await brokerage_service.connect(ACCOUNT, "Robinhood", "rh-secret-key")
        conn = await connection_store.get(ACCOUNT, "Robinhood")
        assert conn.credential_encrypted != "rh-secret-key"
        assert brokerage_service.masked_credential(conn) == "rh-s-****"

    async def test_no_credential_masks_to_none(self, brokerage_service, connection_store):
        await brokerage_service.connect(ACCOUNT, "Robinhood")
        conn = await connection_store.get(ACCOUNT, "Robinhood")
        assert brokerage_service.masked_credential(conn) is None


@pytest.mark.unit
class TestDisconnect:
    async def test_disconnect_keeps_row(self, brokerage_service):
        await brokerage_service.connect(ACCOUNT, "Robinhood")
        conn = await brokerage_service.disconnect(ACCOUNT, "Robinhood")
        assert conn.status == "disconnected"
        rows = await brokerage_service.list_connections(ACCOUNT)
        assert [r.status for r in rows] == ["disconnected"]

    async def test_disconnect_unknown(self, brokerage_service):
        with pytest.raises(ConnectionNotFound) as exc:
            await brokerage_service.disconnect(ACCOUNT, "Nope")
        assert exc.value.status_code == 404


@pytest.mark.unit
class TestSync:
    async def test_sync_requires_connection(self, brokerage_service):
        with pytest.raises(NoActiveConnection):
            await brokerage_service.sync(ACCOUNT)

    async def test_sync_after_disconnect_fails(self, brokerage_service):
        await brokerage_service.connect(ACCOUNT, "Robinhood")
        await brokerage_service.disconnect(ACCOUNT, "Robinhood")
        with pytest.raises(NoActiveConnection):
            await brokerage_service.sync(ACCOUNT)

    async def test_sync_loads_mock_portfolio(self, brokerage_service, ledger_service):
        await brokerage_service.connect(ACCOUNT, "Robinhood")
        snap = await brokerage_service.sync(ACCOUNT)
        assert list(snap.positions) == [row["symbol"] for row in MOCK_BROKERAGE_PORTFOLIO]
        assert snap.positions["AAPL"].quantity == 15
        assert snap.synced_at is not None

        # trades continue from the synced set
        result = await ledger_service.trade(ACCOUNT, "AAPL", "sell", 15, 190)
        assert "AAPL" not in result.positions
        assert (await ledger_service.audit(ACCOUNT))["consistent"] is True

    async def test_unreadable_credential_is_state_error(self, brokerage_service, connection_store):
        await brokerage_service.connect(ACCOUNT, "Robinhood", "rh-secret-key")
        conn = await connection_store.get(ACCOUNT, "Robinhood")
        conn.credential_encrypted = "not-a-fernet-token"
        with pytest.raises(StateError) as exc:
            await brokerage_service.sync(ACCOUNT)
        assert exc.value.status_code == 400
        assert brokerage_service.masked_credential(conn) == "****"
