"""SQLAlchemy ORM model for Organizations (the tenant boundary)."""

from __future__ import annotations

import uuid

from sqlalchemy import Boolean, Float, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from contractoros.db.base import Base
from contractoros.domain.mixins import TimestampMixin

DEFAULT_DAILY_REQUEST_LIMIT = 200
DEFAULT_DAILY_TOKEN_LIMIT = 100_000


class Organization(Base, TimestampMixin):
    __tablename__ = "organizations"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)

    # AI usage budget: "free" | "pro" | "enterprise"
    ai_tier: Mapped[str] = mapped_column(String(20), default="free", nullable=False)
    daily_request_limit: Mapped[int] = mapped_column(
        Integer, default=DEFAULT_DAILY_REQUEST_LIMIT, nullable=False
    )
    daily_token_limit: Mapped[int] = mapped_column(
        Integer, default=DEFAULT_DAILY_TOKEN_LIMIT, nullable=False
    )
    # USD per day; 0 disables the cost ceiling
    daily_cost_limit: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    enable_assistant: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
