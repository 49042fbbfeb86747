"""SQLAlchemy ORM model for field Daily Logs."""

from __future__ import annotations

import uuid
from datetime import date
from typing import Any, List, Optional

from sqlalchemy import JSON, Boolean, Date, Float, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from contractoros.db.base import Base
from contractoros.domain.mixins import TenantMixin, TimestampMixin

DAILY_LOG_CATEGORIES = (
    "general",
    "progress",
    "issue",
    "safety",
    "weather",
    "delivery",
    "inspection",
    "client_interaction",
    "subcontractor",
    "equipment",
)


class DailyLog(Base, TenantMixin, TimestampMixin):
    __tablename__ = "daily_logs"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    project_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    project_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    user_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    user_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    log_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    category: Mapped[str] = mapped_column(String(30), default="general", nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    is_private: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    crew_count: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    hours_worked: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    # {"condition", "temperature_high", "temperature_low", "notes"}
    weather: Mapped[Optional[Any]] = mapped_column(JSON, nullable=True)
    # [{"description", "severity", "resolved"}]
    issues: Mapped[List[Any]] = mapped_column(JSON, default=list, nullable=False)
    # [{"id", "url", "caption"}]
    photos: Mapped[List[Any]] = mapped_column(JSON, default=list, nullable=False)
    tags: Mapped[List[Any]] = mapped_column(JSON, default=list, nullable=False)
