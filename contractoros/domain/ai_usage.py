"""SQLAlchemy ORM model for per-org daily AI usage counters."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Any

from sqlalchemy import JSON, Date, DateTime, Float, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from contractoros.db.base import Base
from contractoros.domain.mixins import TenantMixin, utcnow


class AIUsageDaily(Base, TenantMixin):
    __tablename__ = "ai_usage_daily"
    __table_args__ = (UniqueConstraint("org_id", "usage_date", name="uq_ai_usage_org_date"),)

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    usage_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    requests: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    input_tokens: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    output_tokens: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    cost: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    # {model_key: {"requests", "tokens", "cost"}}
    by_model: Mapped[Any] = mapped_column(JSON, default=dict, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False
    )

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens
