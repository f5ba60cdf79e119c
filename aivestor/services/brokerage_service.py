from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from cryptography.fernet import InvalidToken

from aivestor.ledger.errors import ConnectionNotFound, NoActiveConnection, StateError, ValidationError
from aivestor.ledger.store import ConnectionStore, PortfolioSnapshot
from aivestor.services.brokerage_client import BrokerageClient
from aivestor.services.ledger_service import LedgerService
from aivestor.utils.encryption import EncryptionManager, mask_secret
from aivestor.utils.logging import audit_log

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConnectResult:
    connection: Any
    created: bool


class BrokerageService:
    """Connect/disconnect brokerages and pull their positions into the ledger."""

    def __init__(
        self,
        connections: ConnectionStore,
        ledger: LedgerService,
        client: BrokerageClient,
        encryption: EncryptionManager,
    ):
        self._connections = connections
        self._ledger = ledger
        self._client = client
        self._encryption = encryption

    async def connect(
        self, account_id: str, broker_name: str, credential_ref: str | None = None
    ) -> ConnectResult:
        """Idempotent upsert: an existing (account, broker) row is reconnected."""
        broker_name = _require_broker(broker_name)
        encrypted = self._encryption.encrypt(credential_ref) if credential_ref else None
        conn, created = await self._connections.connect(account_id, broker_name, encrypted)
        audit_log(
            "brokerage_connected" if created else "brokerage_reconnected",
            user_id=account_id, broker=broker_name,
        )
        return ConnectResult(connection=conn, created=created)

    async def disconnect(self, account_id: str, broker_name: str) -> Any:
        broker_name = _require_broker(broker_name)
        conn = await self._connections.mark_disconnected(account_id, broker_name)
        if conn is None:
            raise ConnectionNotFound()
        audit_log("brokerage_disconnected", user_id=account_id, broker=broker_name)
        return conn

    async def list_connections(self, account_id: str) -> list[Any]:
        return await self._connections.list_for_account(account_id)

    async def sync(self, account_id: str) -> PortfolioSnapshot:
        conn = await self._connections.first_connected(account_id)
        if conn is None:
            raise NoActiveConnection()
        credential = None
        if conn.credential_encrypted:
            try:
                credential = self._encryption.decrypt(conn.credential_encrypted)
            except InvalidToken as e:
                logger.warning("Credential for %s no longer decrypts", conn.broker_name)
                raise StateError(
                    f"Stored credential for {conn.broker_name} is unreadable; reconnect with a new one"
                ) from e
        positions = await self._client.fetch_positions(conn, credential)
        snapshot = await self._ledger.sync(account_id, positions)
        audit_log("portfolio_synced", user_id=account_id, broker=conn.broker_name, positions=len(positions))
        return snapshot

    def masked_credential(self, conn: Any) -> str | None:
        if not conn.credential_encrypted:
            return None
        try:
            return mask_secret(self._encryption.decrypt(conn.credential_encrypted))
        except InvalidToken:
            # encrypted under a key that has since been rotated out
            return "****"


def _require_broker(broker_name: object) -> str:
    if not isinstance(broker_name, str) or not broker_name.strip():
        raise ValidationError("brokerName is required")
    return broker_name.strip()
