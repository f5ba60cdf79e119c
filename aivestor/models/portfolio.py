from datetime import datetime

from sqlalchemy import Integer, String, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from aivestor.models.base import Base


class PortfolioDocument(Base):
    """Per-account position snapshot. ``version`` is the optimistic-lock token."""

    __tablename__ = "portfolios"

    account_id: Mapped[str] = mapped_column(String, primary_key=True)
    positions: Mapped[list] = mapped_column(JSONB, nullable=False, server_default="[]")
    version: Mapped[int] = mapped_column(Integer, nullable=False, server_default="0")
    baseline_positions: Mapped[list] = mapped_column(JSONB, nullable=False, server_default="[]")
    baseline_version: Mapped[int] = mapped_column(Integer, nullable=False, server_default="0")
    synced_at: Mapped[datetime | None] = mapped_column(nullable=True)
    created_at: Mapped[datetime] = mapped_column(server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(server_default=func.now())
