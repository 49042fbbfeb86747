"""Invoice endpoints."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from contractoros.core.pagination import PaginationParams
from contractoros.core.response import DataResponse, ItemsResponse, ListResponse, paginated
from contractoros.core.security import CurrentUser, require_role
from contractoros.db.base import get_db
from contractoros.schemas.invoice import (
    InvoiceCreate,
    InvoiceOut,
    InvoiceStats,
    InvoiceUpdate,
    PaymentCreate,
    PaymentOut,
    VoidRequest,
)
from contractoros.services.invoice import InvoiceService

router = APIRouter(prefix="/invoices", tags=["Invoices"])

# Billing is limited to OWNER/PM
_billing = require_role("PM")


def _svc(session: AsyncSession, user: CurrentUser) -> InvoiceService:
    return InvoiceService(session, user.org_id)


@router.get("", response_model=ListResponse[InvoiceOut])
async def list_invoices(
    filter_status: Optional[str] = Query(default=None, alias="status"),
    project_id: Optional[str] = Query(default=None, alias="projectId"),
    pagination: PaginationParams = Depends(),
    session: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(_billing),
):
    items, total = await _svc(session, user).list_invoices(
        pagination, status=filter_status, project_id=project_id
    )
    return paginated(
        [InvoiceOut.model_validate(i) for i in items], total, pagination.page, pagination.limit
    )


@router.get("/stats", response_model=DataResponse[InvoiceStats])
async def invoice_stats(
    session: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(_billing),
):
    return {"data": await _svc(session, user).get_stats()}


@router.post("", response_model=DataResponse[InvoiceOut], status_code=status.HTTP_201_CREATED)
async def create_invoice(
    body: InvoiceCreate,
    session: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(_billing),
):
    invoice = await _svc(session, user).create_invoice(body)
    return {"data": InvoiceOut.model_validate(invoice)}


@router.get("/{invoice_id}", response_model=DataResponse[InvoiceOut])
async def get_invoice(
    invoice_id: str,
    session: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(_billing),
):
    invoice = await _svc(session, user).get_invoice(invoice_id)
    return {"data": InvoiceOut.model_validate(invoice)}


@router.patch("/{invoice_id}", response_model=DataResponse[InvoiceOut])
async def update_invoice(
    invoice_id: str,
    body: InvoiceUpdate,
    session: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(_billing),
):
    invoice = await _svc(session, user).update_invoice(invoice_id, body)
    return {"data": InvoiceOut.model_validate(invoice)}


@router.delete("/{invoice_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_invoice(
    invoice_id: str,
    session: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(_billing),
):
    await _svc(session, user).delete_invoice(invoice_id)


@router.post("/{invoice_id}/send", response_model=DataResponse[InvoiceOut])
async def send_invoice(
    invoice_id: str,
    session: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(_billing),
):
    invoice = await _svc(session, user).send_invoice(invoice_id)
    return {"data": InvoiceOut.model_validate(invoice)}


@router.get("/{invoice_id}/payments", response_model=ItemsResponse[PaymentOut])
async def list_payments(
    invoice_id: str,
    session: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(_billing),
):
    payments = await _svc(session, user).list_payments(invoice_id)
    return {"items": [PaymentOut.model_validate(p) for p in payments]}


@router.post("/{invoice_id}/payments", response_model=DataResponse[InvoiceOut])
async def add_payment(
    invoice_id: str,
    body: PaymentCreate,
    session: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(_billing),
):
    invoice = await _svc(session, user).add_payment(invoice_id, body)
    return {"data": InvoiceOut.model_validate(invoice)}


@router.post("/{invoice_id}/mark-paid", response_model=DataResponse[InvoiceOut])
async def mark_paid(
    invoice_id: str,
    session: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(_billing),
):
    invoice = await _svc(session, user).mark_as_paid(invoice_id)
    return {"data": InvoiceOut.model_validate(invoice)}


@router.post("/{invoice_id}/void", response_model=DataResponse[InvoiceOut])
async def void_invoice(
    invoice_id: str,
    body: VoidRequest,
    session: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(_billing),
):
    invoice = await _svc(session, user).void_invoice(invoice_id, body.reason)
    return {"data": InvoiceOut.model_validate(invoice)}
