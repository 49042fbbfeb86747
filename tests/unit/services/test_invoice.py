"""Tests for invoice totals and the invoice lifecycle."""
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import pytest
from sqlalchemy.exc import IntegrityError

from contractoros.core.exceptions import ConflictError, PaymentError, ValidationError
from contractoros.repositories.invoice import InvoiceRepository
from contractoros.schemas.invoice import InvoiceCreate, InvoiceUpdate, LineItem, PaymentCreate
from contractoros.services.invoice import (
    InvoiceService,
    calculate_invoice_totals,
    due_date_from_terms,
)

ORG = "org-1"
# Minimum columns for an invoice written straight through the repository
LEGACY = {
    "client_name": "Smith Homes",
    "issue_date": date(2026, 1, 5),
    "due_date": date(2026, 2, 4),
}


def items(*pairs) -> list[LineItem]:
    return [LineItem(description=f"item {i}", quantity=q, unit_price=p) for i, (q, p) in enumerate(pairs)]


def invoice_for(amount, **overrides) -> InvoiceCreate:
    values = {"client_name": "Smith Homes", "line_items": items((1, amount))}
    values.update(overrides)
    return InvoiceCreate(**values)


@pytest.fixture
def service(session) -> InvoiceService:
    return InvoiceService(session, ORG)


class TestTotals:
    def test_tax_and_retainage(self):
        totals = calculate_invoice_totals(
            items((2, 500), (1, 1000)), tax_rate=8, retainage_percent=10
        )
        assert totals.subtotal == Decimal("2000.00")
        assert totals.tax_amount == Decimal("160.00")
        assert totals.retainage_amount == Decimal("200.00")
        assert totals.total == Decimal("1960.00")
        assert totals.amount_due == Decimal("1960.00")

    def test_percent_discount(self):
        totals = calculate_invoice_totals(items((1, 2000)), discount=5, discount_type="percent")
        assert totals.discount_amount == Decimal("100.00")
        assert totals.total == Decimal("1900.00")

    def test_fixed_discount(self):
        totals = calculate_invoice_totals(items((1, 2000)), discount=250)
        assert totals.total == Decimal("1750.00")

    def test_amount_due_never_negative(self):
        totals = calculate_invoice_totals(items((1, 100)), amount_paid=150)
        assert totals.amount_due == Decimal("0.00")

    def test_no_line_items(self):
        assert calculate_invoice_totals([]).total == Decimal("0.00")


class TestDueDate:
    issued = date(2026, 3, 1)

    def test_net_terms(self):
        assert due_date_from_terms(self.issued, "Net 15") == date(2026, 3, 16)
        assert due_date_from_terms(self.issued, "net45") == date(2026, 4, 15)

    def test_due_on_receipt(self):
        assert due_date_from_terms(self.issued, "Due on Receipt") == self.issued

    def test_unknown_terms_default_to_thirty_days(self):
        assert due_date_from_terms(self.issued, "whenever") == date(2026, 3, 31)
        assert due_date_from_terms(self.issued, None) == date(2026, 3, 31)


class TestLifecycle:
    async def test_create_numbers_and_drafts(self, service):
        first = await service.create_invoice(invoice_for(1000, issue_date=date(2026, 3, 1)))
        second = await service.create_invoice(invoice_for(500))

        assert first.number == "INV-00001"
        assert second.number == "INV-00002"
        assert first.status == "draft"
        assert first.due_date == date(2026, 3, 31)
        assert first.total == Decimal("1000.00")
        assert first.line_items[0]["amount"] == 1000.0

    async def test_only_drafts_can_be_edited(self, service):
        invoice = await service.create_invoice(invoice_for(1000))

        edited = await service.update_invoice(
            invoice.id, InvoiceUpdate(line_items=items((3, 100)), tax_rate=Decimal("10"))
        )
        assert edited.total == Decimal("330.00")

        await service.send_invoice(invoice.id)
        with pytest.raises(ConflictError):
            await service.update_invoice(invoice.id, InvoiceUpdate(notes="late edit"))

    async def test_partial_then_full_payment(self, service):
        invoice = await service.create_invoice(invoice_for(1000))
        await service.send_invoice(invoice.id)

        partial = await service.add_payment(invoice.id, PaymentCreate(amount=Decimal("400"), method="check"))
        assert partial.status == "partial"
        assert partial.amount_paid == Decimal("400.00")
        assert partial.amount_due == Decimal("600.00")
        assert partial.paid_at is None

        paid = await service.mark_as_paid(invoice.id)
        assert paid.status == "paid"
        assert paid.amount_due == Decimal("0.00")
        assert paid.paid_at is not None

        payments = await service.list_payments(invoice.id)
        assert [p.amount for p in payments] == [Decimal("400.00"), Decimal("600.00")]
        assert payments[1].method == "other"

    async def test_paid_invoice_rejects_more_payments(self, service):
        invoice = await service.create_invoice(invoice_for(100))
        await service.add_payment(invoice.id, PaymentCreate(amount=Decimal("100"), method="cash"))

        with pytest.raises(ConflictError):
            await service.add_payment(invoice.id, PaymentCreate(amount=Decimal("1"), method="cash"))
        with pytest.raises(ConflictError):
            await service.mark_as_paid(invoice.id)

    async def test_card_payments_enforce_processor_minimum(self, service):
        invoice = await service.create_invoice(invoice_for(100))

        with pytest.raises(PaymentError) as exc_info:
            await service.add_payment(invoice.id, PaymentCreate(amount=Decimal("0.25"), method="card"))
        assert exc_info.value.message == "Minimum payment amount is $0.50"

        small_check = await service.add_payment(
            invoice.id, PaymentCreate(amount=Decimal("0.25"), method="check")
        )
        assert small_check.status == "partial"

    async def test_void(self, service):
        invoice = await service.create_invoice(invoice_for(100))

        voided = await service.void_invoice(invoice.id, "Duplicate")

        assert voided.status == "void"
        assert voided.void_reason == "Duplicate"
        assert voided.amount_due == Decimal("0.00")
        with pytest.raises(ConflictError):
            await service.add_payment(invoice.id, PaymentCreate(amount=Decimal("10"), method="cash"))
        with pytest.raises(ConflictError):
            await service.send_invoice(invoice.id)

    async def test_paid_invoice_cannot_be_voided(self, service):
        invoice = await service.create_invoice(invoice_for(100))
        await service.mark_as_paid(invoice.id)

        with pytest.raises(ConflictError) as exc_info:
            await service.void_invoice(invoice.id, "oops")
        assert exc_info.value.message == "Cannot void a paid invoice"

    async def test_invalid_status_filter(self, service):
        from contractoros.core.pagination import PaginationParams

        params = PaginationParams(page=1, limit=20, sort="created_at", order="desc")
        with pytest.raises(ValidationError):
            await service.list_invoices(params, status="lost")


async def test_stats(service):
    today = datetime.now(timezone.utc).date()

    overdue = await service.create_invoice(invoice_for(1000, issue_date=today - timedelta(days=60)))
    await service.send_invoice(overdue.id)
    current = await service.create_invoice(invoice_for(500, issue_date=today))
    await service.send_invoice(current.id)
    paid = await service.create_invoice(invoice_for(300))
    await service.mark_as_paid(paid.id)
    await service.create_invoice(invoice_for(50))

    stats = await service.get_stats(today=today)

    assert stats.outstanding_amount == 1500.0
    assert stats.outstanding_count == 2
    assert stats.overdue_amount == 1000.0
    assert stats.overdue_count == 1
    assert stats.paid_this_month == 300.0
    assert stats.draft_count == 1
    assert stats.sent_count == 2


class TestNumbering:
    async def test_numbers_are_not_reused_after_delete(self, service):
        await service.create_invoice(invoice_for(100))
        second = await service.create_invoice(invoice_for(200))
        await service.delete_invoice(second.id)

        third = await service.create_invoice(invoice_for(300))

        assert third.number == "INV-00003"

    async def test_allocation_does_not_wait_for_the_invoice_row(self, session_factory):
        async with session_factory() as first, session_factory() as second:
            number_a = await InvoiceRepository(first, ORG).next_number()
            await first.commit()
            number_b = await InvoiceRepository(second, ORG).next_number()
            await second.commit()

        assert (number_a, number_b) == ("INV-00001", "INV-00002")

    async def test_counter_starts_after_invoices_on_file(self, session, service):
        await InvoiceRepository(session, ORG).create(number="INV-00001", **LEGACY)

        invoice = await service.create_invoice(invoice_for(100))

        assert invoice.number == "INV-00002"

    async def test_counters_are_per_org(self, session, service):
        await service.create_invoice(invoice_for(100))

        other = await InvoiceService(session, "org-2").create_invoice(invoice_for(100))

        assert other.number == "INV-00001"

    async def test_duplicate_number_in_org_is_rejected(self, session):
        repo = InvoiceRepository(session, ORG)
        await repo.create(number="INV-00007", **LEGACY)
        await InvoiceRepository(session, "org-2").create(number="INV-00007", **LEGACY)

        with pytest.raises(IntegrityError):
            await repo.create(number="INV-00007", **LEGACY)
