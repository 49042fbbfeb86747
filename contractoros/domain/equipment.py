"""SQLAlchemy ORM models for Equipment and its checkout history."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import Date, DateTime, ForeignKey, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from contractoros.db.base import Base
from contractoros.domain.mixins import TenantMixin, TimestampMixin, utcnow

EQUIPMENT_STATUSES = ("available", "checked_out", "maintenance", "retired")
EQUIPMENT_CONDITIONS = ("excellent", "good", "fair", "poor")


class Equipment(Base, TenantMixin, TimestampMixin):
    __tablename__ = "equipment"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    category: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    serial_number: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    status: Mapped[str] = mapped_column(String(20), default="available", nullable=False, index=True)
    condition: Mapped[str] = mapped_column(String(20), default="good", nullable=False)
    purchase_price: Mapped[Optional[Decimal]] = mapped_column(Numeric(14, 2), nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Current checkout (cleared on return)
    checked_out_to_user_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    checked_out_to_user_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    current_project_id: Mapped[Optional[str]] = mapped_column(String(36), index=True, nullable=True)
    current_project_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    checked_out_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    expected_return_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)


class EquipmentCheckout(Base, TenantMixin):
    """History row: one per check-out, closed when the item is returned."""

    __tablename__ = "equipment_checkouts"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    equipment_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("equipment.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[str] = mapped_column(String(36), nullable=False)
    user_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    project_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    project_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    checked_out_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )
    checkout_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    returned_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    return_condition: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    return_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
