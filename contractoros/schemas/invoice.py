"""Invoice Pydantic schemas."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Literal, Optional

from pydantic import Field

from contractoros.schemas.common import CamelModel


class LineItem(CamelModel):
    description: str
    quantity: Decimal = Field(default=Decimal("1"), ge=0)
    unit_price: Decimal = Field(ge=0)


class InvoiceCreate(CamelModel):
    client_name: str = Field(min_length=1)
    client_email: Optional[str] = None
    project_id: Optional[str] = None
    project_name: Optional[str] = None
    line_items: list[LineItem] = Field(default_factory=list)
    tax_rate: Decimal = Field(default=Decimal("0"), ge=0)
    retainage_percent: Decimal = Field(default=Decimal("0"), ge=0, le=100)
    discount: Decimal = Field(default=Decimal("0"), ge=0)
    discount_type: Literal["percent", "fixed"] = "fixed"
    payment_terms: str = "Net 30"
    issue_date: Optional[date] = None
    notes: Optional[str] = None


class InvoiceUpdate(CamelModel):
    client_name: Optional[str] = None
    client_email: Optional[str] = None
    project_id: Optional[str] = None
    project_name: Optional[str] = None
    line_items: Optional[list[LineItem]] = None
    tax_rate: Optional[Decimal] = Field(default=None, ge=0)
    retainage_percent: Optional[Decimal] = Field(default=None, ge=0, le=100)
    discount: Optional[Decimal] = Field(default=None, ge=0)
    discount_type: Optional[Literal["percent", "fixed"]] = None
    payment_terms: Optional[str] = None
    issue_date: Optional[date] = None
    notes: Optional[str] = None


class InvoiceOut(CamelModel):
    id: str
    org_id: str
    number: str
    project_id: Optional[str] = None
    project_name: Optional[str] = None
    client_name: str
    client_email: Optional[str] = None
    status: str
    line_items: list[dict[str, Any]]
    tax_rate: float
    retainage_percent: float
    discount: float
    discount_type: str
    subtotal: float
    tax_amount: float
    retainage_amount: float
    discount_amount: float
    total: float
    amount_paid: float
    amount_due: float
    payment_terms: str
    issue_date: date
    due_date: date
    sent_at: Optional[datetime] = None
    paid_at: Optional[datetime] = None
    voided_at: Optional[datetime] = None
    void_reason: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class PaymentCreate(CamelModel):
    amount: Decimal = Field(gt=0)
    method: Literal["card", "ach", "check", "cash", "other"] = "other"
    reference: Optional[str] = None


class PaymentOut(CamelModel):
    id: str
    invoice_id: str
    amount: float
    method: str
    reference: Optional[str] = None
    paid_at: datetime


class VoidRequest(CamelModel):
    reason: str = Field(min_length=1)


class InvoiceStats(CamelModel):
    outstanding_amount: float = 0.0
    outstanding_count: int = 0
    overdue_amount: float = 0.0
    overdue_count: int = 0
    paid_this_month: float = 0.0
    draft_count: int = 0
    sent_count: int = 0
