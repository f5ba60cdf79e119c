import uuid
from datetime import datetime

from sqlalchemy import Boolean, Float, String, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from aivestor.models.base import Base


class User(Base):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    email: Mapped[str] = mapped_column(String, nullable=False, unique=True)
    password_hash: Mapped[str | None] = mapped_column(String, nullable=True)
    risk_tolerance: Mapped[float] = mapped_column(Float, nullable=False, server_default="0.5")
    risk_level: Mapped[str | None] = mapped_column(String, nullable=True)
    risk_profile: Mapped[dict | None] = mapped_column(JSONB, nullable=True)
    risk_answers: Mapped[list | None] = mapped_column(JSONB, nullable=True)
    email_verified: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default="false")
    created_at: Mapped[datetime] = mapped_column(server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(), onupdate=func.now()
    )

    holdings = relationship("Holding", back_populates="user", cascade="all, delete-orphan")
