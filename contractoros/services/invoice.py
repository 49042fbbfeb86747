"""Invoice lifecycle: totals, sending, payments and voiding."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from contractoros.core.exceptions import ConflictError, NotFoundError, PaymentError, ValidationError
from contractoros.core.pagination import PaginationParams
from contractoros.domain.invoice import (
    INVOICE_STATUSES,
    OUTSTANDING_STATUSES,
    Invoice,
    InvoicePayment,
)
from contractoros.repositories.invoice import InvoiceRepository
from contractoros.schemas.invoice import (
    InvoiceCreate,
    InvoiceStats,
    InvoiceUpdate,
    LineItem,
    PaymentCreate,
)
from contractoros.services.payments import dollars_to_cents, validate_payment_amount

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
DEFAULT_TERM_DAYS = 30
_NET_TERMS = re.compile(r"^net\s*(\d+)$", re.IGNORECASE)


def to_money(value) -> Decimal:
    return Decimal(str(value or 0)).quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class InvoiceTotals:
    subtotal: Decimal
    tax_amount: Decimal
    retainage_amount: Decimal
    discount_amount: Decimal
    total: Decimal
    amount_paid: Decimal
    amount_due: Decimal


def calculate_invoice_totals(
    line_items: Iterable[LineItem],
    tax_rate=Decimal("0"),
    retainage_percent=Decimal("0"),
    discount=Decimal("0"),
    discount_type: str = "fixed",
    amount_paid=Decimal("0"),
) -> InvoiceTotals:
    subtotal = sum(
        (Decimal(str(item.quantity)) * Decimal(str(item.unit_price)) for item in line_items),
        Decimal("0"),
    )
    tax = subtotal * Decimal(str(tax_rate)) / 100
    retainage = subtotal * Decimal(str(retainage_percent)) / 100
    if discount_type == "percent":
        discount_amount = subtotal * Decimal(str(discount)) / 100
    else:
        discount_amount = Decimal(str(discount))

    total = to_money(subtotal + tax - retainage - discount_amount)
    paid = to_money(amount_paid)
    return InvoiceTotals(
        subtotal=to_money(subtotal),
        tax_amount=to_money(tax),
        retainage_amount=to_money(retainage),
        discount_amount=to_money(discount_amount),
        total=total,
        amount_paid=paid,
        amount_due=max(Decimal("0.00"), total - paid),
    )


def due_date_from_terms(issue_date: date, terms: Optional[str]) -> date:
    """"Due on Receipt" is the issue date, "Net N" is N days out, anything else 30."""
    normalized = (terms or "").strip()
    if normalized.lower() == "due on receipt":
        return issue_date
    match = _NET_TERMS.match(normalized)
    days = int(match.group(1)) if match else DEFAULT_TERM_DAYS
    return issue_date + timedelta(days=days)


def _line_items_json(items: Iterable[LineItem]) -> list[dict]:
    return [
        {
            "description": item.description,
            "quantity": float(item.quantity),
            "unit_price": float(item.unit_price),
            "amount": float(to_money(item.quantity * item.unit_price)),
        }
        for item in items
    ]


def _stored_line_items(invoice: Invoice) -> list[LineItem]:
    return [LineItem.model_validate(item) for item in (invoice.line_items or [])]


class InvoiceService:
    def __init__(self, session: AsyncSession, org_id: str):
        self._repo = InvoiceRepository(session, org_id)

    async def list_invoices(
        self,
        pagination: PaginationParams,
        status: Optional[str] = None,
        project_id: Optional[str] = None,
    ):
        if status and status not in INVOICE_STATUSES:
            raise ValidationError(f"Invalid status: {status}")
        items, total = await self._repo.list(
            offset=pagination.offset,
            limit=pagination.limit,
            order_by=pagination.sort,
            order=pagination.order,
            filters={"status": status, "project_id": project_id},
        )
        return items, total

    async def get_invoice(self, invoice_id: str) -> Invoice:
        invoice = await self._repo.get_by_id(invoice_id)
        if not invoice:
            raise NotFoundError("Invoice", invoice_id)
        return invoice

    async def create_invoice(self, data: InvoiceCreate) -> Invoice:
        totals = calculate_invoice_totals(
            data.line_items, data.tax_rate, data.retainage_percent, data.discount, data.discount_type
        )
        issue_date = data.issue_date or date.today()
        invoice = await self._repo.create(
            number=await self._repo.next_number(),
            client_name=data.client_name,
            client_email=data.client_email,
            project_id=data.project_id,
            project_name=data.project_name,
            status="draft",
            line_items=_line_items_json(data.line_items),
            tax_rate=data.tax_rate,
            retainage_percent=data.retainage_percent,
            discount=data.discount,
            discount_type=data.discount_type,
            payment_terms=data.payment_terms,
            issue_date=issue_date,
            due_date=due_date_from_terms(issue_date, data.payment_terms),
            notes=data.notes,
            subtotal=totals.subtotal,
            tax_amount=totals.tax_amount,
            retainage_amount=totals.retainage_amount,
            discount_amount=totals.discount_amount,
            total=totals.total,
            amount_paid=totals.amount_paid,
            amount_due=totals.amount_due,
        )
        logger.info("Created invoice %s (%s) total=%s", invoice.id, invoice.number, totals.total)
        return invoice

    async def update_invoice(self, invoice_id: str, data: InvoiceUpdate) -> Invoice:
        invoice = await self.get_invoice(invoice_id)
        if invoice.status != "draft":
            raise ConflictError("Only draft invoices can be edited")

        changes = data.model_dump(exclude_unset=True, exclude_none=True)
        line_items = data.line_items if data.line_items is not None else _stored_line_items(invoice)
        if "line_items" in changes:
            changes["line_items"] = _line_items_json(data.line_items)

        totals = calculate_invoice_totals(
            line_items,
            changes.get("tax_rate", invoice.tax_rate),
            changes.get("retainage_percent", invoice.retainage_percent),
            changes.get("discount", invoice.discount),
            changes.get("discount_type", invoice.discount_type),
            invoice.amount_paid,
        )
        issue_date = changes.get("issue_date", invoice.issue_date)
        terms = changes.get("payment_terms", invoice.payment_terms)
        updated = await self._repo.update(
            invoice_id,
            **changes,
            due_date=due_date_from_terms(issue_date, terms),
            subtotal=totals.subtotal,
            tax_amount=totals.tax_amount,
            retainage_amount=totals.retainage_amount,
            discount_amount=totals.discount_amount,
            total=totals.total,
            amount_due=totals.amount_due,
        )
        return updated  # type: ignore[return-value]

    async def delete_invoice(self, invoice_id: str) -> None:
        if not await self._repo.soft_delete(invoice_id):
            raise NotFoundError("Invoice", invoice_id)

    async def send_invoice(self, invoice_id: str) -> Invoice:
        invoice = await self.get_invoice(invoice_id)
        if invoice.status in ("void", "paid"):
            raise ConflictError(f"Cannot send a {invoice.status} invoice")
        updated = await self._repo.update(
            invoice_id, status="sent", sent_at=datetime.now(timezone.utc)
        )
        logger.info("Invoice %s marked sent", invoice_id)
        return updated  # type: ignore[return-value]

    async def add_payment(self, invoice_id: str, data: PaymentCreate) -> Invoice:
        amount = to_money(data.amount)
        if amount <= 0:
            raise ValidationError("Payment amount must be greater than 0")
        if data.method in ("card", "ach"):
            check = validate_payment_amount(dollars_to_cents(amount))
            if not check.valid:
                raise PaymentError(check.error)

        invoice = await self.get_invoice(invoice_id)
        if invoice.status == "void":
            raise ConflictError("Cannot record a payment on a void invoice")
        if invoice.status == "paid":
            raise ConflictError("Invoice is already paid")

        now = datetime.now(timezone.utc)
        await self._repo.add_payment(
            invoice_id, amount=amount, method=data.method, reference=data.reference, paid_at=now
        )

        amount_paid = to_money(invoice.amount_paid) + amount
        amount_due = max(Decimal("0.00"), to_money(invoice.total) - amount_paid)
        fully_paid = amount_due <= 0
        updated = await self._repo.update(
            invoice_id,
            amount_paid=amount_paid,
            amount_due=amount_due,
            status="paid" if fully_paid else "partial",
            paid_at=now if fully_paid else None,
        )
        logger.info(
            "Payment of %s on invoice %s (%s remaining)", amount, invoice_id, amount_due
        )
        return updated  # type: ignore[return-value]

    async def mark_as_paid(self, invoice_id: str, method: str = "other") -> Invoice:
        invoice = await self.get_invoice(invoice_id)
        balance = to_money(invoice.amount_due)
        if balance <= 0:
            raise ConflictError("Invoice has no remaining balance")
        return await self.add_payment(invoice_id, PaymentCreate(amount=balance, method=method))

    async def void_invoice(self, invoice_id: str, reason: str) -> Invoice:
        invoice = await self.get_invoice(invoice_id)
        if invoice.status == "paid":
            raise ConflictError("Cannot void a paid invoice")
        if invoice.status == "void":
            raise ConflictError("Invoice is already void")
        updated = await self._repo.update(
            invoice_id,
            status="void",
            void_reason=reason,
            voided_at=datetime.now(timezone.utc),
            amount_due=Decimal("0.00"),
        )
        logger.info("Invoice %s voided: %s", invoice_id, reason)
        return updated  # type: ignore[return-value]

    async def list_payments(self, invoice_id: str) -> list[InvoicePayment]:
        await self.get_invoice(invoice_id)
        return await self._repo.list_payments(invoice_id)

    async def get_stats(self, today: Optional[date] = None) -> InvoiceStats:
        today = today or date.today()
        stats = InvoiceStats()
        invoices = await self._repo.list_by_statuses(INVOICE_STATUSES)

        for invoice in invoices:
            if invoice.status in OUTSTANDING_STATUSES:
                due = float(invoice.amount_due or 0)
                stats.outstanding_amount += due
                stats.outstanding_count += 1
                if invoice.status == "overdue" or invoice.due_date < today:
                    stats.overdue_amount += due
                    stats.overdue_count += 1
            if invoice.status == "paid" and invoice.paid_at is not None:
                paid_on = invoice.paid_at.date()
                if (paid_on.year, paid_on.month) == (today.year, today.month):
                    stats.paid_this_month += float(invoice.amount_paid or 0)
            if invoice.status == "draft":
                stats.draft_count += 1
            elif invoice.status == "sent":
                stats.sent_count += 1

        stats.outstanding_amount = round(stats.outstanding_amount, 2)
        stats.overdue_amount = round(stats.overdue_amount, 2)
        stats.paid_this_month = round(stats.paid_this_month, 2)
        return stats
