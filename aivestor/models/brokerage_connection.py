import enum
import uuid
from datetime import datetime

from sqlalchemy import String, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from aivestor.models.base import Base


class ConnectionStatus(str, enum.Enum):
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"


class BrokerageConnection(Base):
    __tablename__ = "brokerage_connections"
    __table_args__ = (
        UniqueConstraint("account_id", "broker_name", name="uq_brokerage_connection"),
    )

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    account_id: Mapped[str] = mapped_column(String, nullable=False)
    broker_name: Mapped[str] = mapped_column(String, nullable=False)
    credential_encrypted: Mapped[str | None] = mapped_column(String, nullable=True)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, server_default=ConnectionStatus.CONNECTED.value
    )
    connected_at: Mapped[datetime | None] = mapped_column(nullable=True)
    disconnected_at: Mapped[datetime | None] = mapped_column(nullable=True)
    created_at: Mapped[datetime] = mapped_column(server_default=func.now())
