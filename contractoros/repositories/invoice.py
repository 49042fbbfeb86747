"""Invoice repository."""

from __future__ import annotations

from typing import Any, Iterable

from sqlalchemy import func, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert

from contractoros.domain.invoice import Invoice, InvoiceCounter, InvoicePayment
from contractoros.repositories.base import BaseRepository

_UPSERTS = {"postgresql": pg_insert, "sqlite": sqlite_insert}


class InvoiceRepository(BaseRepository[Invoice]):
    model = Invoice

    async def next_number(self) -> str:
        """Allocate the org's next ``INV-nnnnn`` number.

        The counter row is bumped with a single upsert, so concurrent
        allocations never see the same value. The first allocation seeds it
        from the invoices on file; soft-deleted invoices keep their number.
        """
        on_file = (
            select(func.count())
            .select_from(Invoice)
            .where(Invoice.org_id == self._org_id)
            .scalar_subquery()
        )
        upsert = _UPSERTS[self._session.get_bind().dialect.name](InvoiceCounter)
        stmt = (
            upsert.values(org_id=self._org_id, last_number=on_file + 1)
            .on_conflict_do_update(
                index_elements=[InvoiceCounter.org_id],
                set_={"last_number": InvoiceCounter.last_number + 1},
            )
            .returning(InvoiceCounter.last_number)
        )
        value = (await self._session.execute(stmt)).scalar_one()
        return f"INV-{value:05d}"

    async def list_by_statuses(self, statuses: Iterable[str]) -> list[Invoice]:
        q = self._base_query().where(Invoice.status.in_(list(statuses)))
        return list((await self._session.execute(q)).scalars().all())

    async def add_payment(self, invoice_id: str, **kwargs: Any) -> InvoicePayment:
        payment = InvoicePayment(org_id=self._org_id, invoice_id=invoice_id, **kwargs)
        self._session.add(payment)
        await self._session.flush()
        return payment

    async def list_payments(self, invoice_id: str) -> list[InvoicePayment]:
        result = await self._session.execute(
            select(InvoicePayment)
            .where(InvoicePayment.org_id == self._org_id)
            .where(InvoicePayment.invoice_id == invoice_id)
            .order_by(InvoicePayment.paid_at.asc())
        )
        return list(result.scalars().all())
