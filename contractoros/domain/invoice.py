"""SQLAlchemy ORM models for Invoices and the payments applied to them."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Any, List, Optional

from sqlalchemy import (
    JSON,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from contractoros.db.base import Base
from contractoros.domain.mixins import TenantMixin, TimestampMixin, utcnow

INVOICE_STATUSES = ("draft", "sent", "viewed", "partial", "paid", "overdue", "void")
# Statuses that still count towards accounts receivable
OUTSTANDING_STATUSES = ("sent", "viewed", "partial", "overdue")


class Invoice(Base, TenantMixin, TimestampMixin):
    __tablename__ = "invoices"
    __table_args__ = (UniqueConstraint("org_id", "number", name="uq_invoices_org_number"),)

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    number: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    project_id: Mapped[Optional[str]] = mapped_column(String(36), index=True, nullable=True)
    project_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    client_name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    client_email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    status: Mapped[str] = mapped_column(String(20), default="draft", nullable=False, index=True)

    # [{"description", "quantity", "unit_price", "amount"}]
    line_items: Mapped[List[Any]] = mapped_column(JSON, default=list, nullable=False)
    tax_rate: Mapped[Decimal] = mapped_column(Numeric(6, 3), default=Decimal("0"), nullable=False)
    retainage_percent: Mapped[Decimal] = mapped_column(
        Numeric(6, 3), default=Decimal("0"), nullable=False
    )
    discount: Mapped[Decimal] = mapped_column(Numeric(14, 2), default=Decimal("0"), nullable=False)
    # "percent" | "fixed"
    discount_type: Mapped[str] = mapped_column(String(10), default="fixed", nullable=False)

    # Derived totals, recomputed on every write
    subtotal: Mapped[Decimal] = mapped_column(Numeric(14, 2), default=Decimal("0"), nullable=False)
    tax_amount: Mapped[Decimal] = mapped_column(Numeric(14, 2), default=Decimal("0"), nullable=False)
    retainage_amount: Mapped[Decimal] = mapped_column(
        Numeric(14, 2), default=Decimal("0"), nullable=False
    )
    discount_amount: Mapped[Decimal] = mapped_column(
        Numeric(14, 2), default=Decimal("0"), nullable=False
    )
    total: Mapped[Decimal] = mapped_column(Numeric(14, 2), default=Decimal("0"), nullable=False)
    amount_paid: Mapped[Decimal] = mapped_column(Numeric(14, 2), default=Decimal("0"), nullable=False)
    amount_due: Mapped[Decimal] = mapped_column(Numeric(14, 2), default=Decimal("0"), nullable=False)

    payment_terms: Mapped[str] = mapped_column(String(50), default="Net 30", nullable=False)
    issue_date: Mapped[date] = mapped_column(Date, nullable=False)
    due_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)

    sent_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    paid_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    voided_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    void_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)


class InvoicePayment(Base, TenantMixin):
    """One payment applied to an invoice (append-only)."""

    __tablename__ = "invoice_payments"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    invoice_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("invoices.id", ondelete="CASCADE"), nullable=False, index=True
    )
    amount: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    # card | ach | check | cash | other
    method: Mapped[str] = mapped_column(String(20), default="other", nullable=False)
    reference: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    paid_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )


class InvoiceCounter(Base):
    """Last invoice number handed out per org."""

    __tablename__ = "invoice_counters"

    org_id: Mapped[str] = mapped_column(String(36), primary_key=True)
    last_number: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
