import uuid
from datetime import datetime

from sqlalchemy import Float, Index, String, func
from sqlalchemy.orm import Mapped, mapped_column

from aivestor.models.base import Base


class PriceAlert(Base):
    __tablename__ = "alerts"
    __table_args__ = (
        Index("idx_alerts_user_created", "user_id", "created_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    user_id: Mapped[str] = mapped_column(String, nullable=False)
    stock_symbol: Mapped[str] = mapped_column(String, nullable=False)
    trigger_price: Mapped[float] = mapped_column(Float, nullable=False)
    message: Mapped[str] = mapped_column(String, nullable=False)
    created_at: Mapped[datetime] = mapped_column(server_default=func.now())
