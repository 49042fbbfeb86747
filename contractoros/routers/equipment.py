"""Equipment endpoints. The collection is returned unpaginated as ``{"items": [...]}``."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from contractoros.core.response import ItemsResponse
from contractoros.core.security import CurrentUser, get_current_user, require_role
from contractoros.db.base import get_db
from contractoros.schemas.equipment import (
    CheckoutOut,
    CheckoutRequest,
    EquipmentCreate,
    EquipmentOut,
    EquipmentStats,
    EquipmentUpdate,
    ReturnRequest,
)
from contractoros.services.equipment import EquipmentService

router = APIRouter(prefix="/equipment", tags=["Equipment"])


@router.get("", response_model=ItemsResponse[EquipmentOut])
async def list_equipment(
    project_id: Optional[str] = Query(default=None, alias="projectId"),
    filter_status: Optional[str] = Query(default=None, alias="status"),
    session: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    items = await EquipmentService(session, user.org_id).list_equipment(
        project_id=project_id, status=filter_status
    )
    return {"items": [EquipmentOut.model_validate(i) for i in items]}


@router.get("/stats", response_model=EquipmentStats)
async def equipment_stats(
    session: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    return await EquipmentService(session, user.org_id).get_stats()


@router.post("", response_model=EquipmentOut, status_code=status.HTTP_201_CREATED)
async def create_equipment(
    body: EquipmentCreate,
    session: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(require_role("PM")),
):
    item = await EquipmentService(session, user.org_id).create_equipment(body)
    return EquipmentOut.model_validate(item)


@router.get("/{equipment_id}", response_model=EquipmentOut)
async def get_equipment(
    equipment_id: str,
    session: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    item = await EquipmentService(session, user.org_id).get_equipment(equipment_id)
    return EquipmentOut.model_validate(item)


@router.patch("/{equipment_id}", response_model=EquipmentOut)
async def update_equipment(
    equipment_id: str,
    body: EquipmentUpdate,
    session: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(require_role("PM")),
):
    item = await EquipmentService(session, user.org_id).update_equipment(equipment_id, body)
    return EquipmentOut.model_validate(item)


@router.delete("/{equipment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_equipment(
    equipment_id: str,
    session: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(require_role("PM")),
):
    await EquipmentService(session, user.org_id).delete_equipment(equipment_id)


@router.post("/{equipment_id}/checkout", response_model=EquipmentOut)
async def checkout_equipment(
    equipment_id: str,
    body: CheckoutRequest,
    session: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    """Check an available item out to a user (409 unless available)."""
    item = await EquipmentService(session, user.org_id).checkout(equipment_id, body)
    return EquipmentOut.model_validate(item)


@router.post("/{equipment_id}/return", response_model=EquipmentOut)
async def return_equipment(
    equipment_id: str,
    body: ReturnRequest,
    session: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    """Return a checked-out item. Items returned in poor condition go to maintenance."""
    item = await EquipmentService(session, user.org_id).return_equipment(equipment_id, body)
    return EquipmentOut.model_validate(item)


@router.get("/{equipment_id}/checkouts", response_model=ItemsResponse[CheckoutOut])
async def list_checkouts(
    equipment_id: str,
    session: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    records = await EquipmentService(session, user.org_id).list_checkouts(equipment_id)
    return {"items": [CheckoutOut.model_validate(r) for r in records]}
