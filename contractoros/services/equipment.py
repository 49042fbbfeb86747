"""Equipment inventory and check-out/return workflow."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from contractoros.core.exceptions import ConflictError, NotFoundError, ValidationError
from contractoros.domain.equipment import EQUIPMENT_STATUSES, Equipment, EquipmentCheckout
from contractoros.repositories.equipment import EquipmentRepository
from contractoros.schemas.equipment import (
    CheckoutRequest,
    EquipmentCreate,
    EquipmentStats,
    EquipmentUpdate,
    ReturnRequest,
)

logger = logging.getLogger(__name__)

_CLEARED_CHECKOUT = {
    "checked_out_to_user_id": None,
    "checked_out_to_user_name": None,
    "current_project_id": None,
    "current_project_name": None,
    "checked_out_at": None,
    "expected_return_date": None,
}


class EquipmentService:
    def __init__(self, session: AsyncSession, org_id: str):
        self._repo = EquipmentRepository(session, org_id)

    async def list_equipment(
        self, *, project_id: Optional[str] = None, status: Optional[str] = None
    ) -> list[Equipment]:
        if status and status not in EQUIPMENT_STATUSES:
            raise ValidationError(f"Invalid status: {status}")
        return await self._repo.list_filtered(project_id=project_id, status=status)

    async def get_equipment(self, equipment_id: str) -> Equipment:
        item = await self._repo.get_by_id(equipment_id)
        if not item:
            raise NotFoundError("Equipment", equipment_id)
        return item

    async def create_equipment(self, data: EquipmentCreate) -> Equipment:
        return await self._repo.create(**data.model_dump(exclude_none=True))

    async def update_equipment(self, equipment_id: str, data: EquipmentUpdate) -> Equipment:
        await self.get_equipment(equipment_id)
        updated = await self._repo.update(
            equipment_id, **data.model_dump(exclude_none=True, exclude_unset=True)
        )
        return updated  # type: ignore[return-value]

    async def delete_equipment(self, equipment_id: str) -> None:
        if not await self._repo.soft_delete(equipment_id):
            raise NotFoundError("Equipment", equipment_id)

    async def checkout(self, equipment_id: str, data: CheckoutRequest) -> Equipment:
        item = await self.get_equipment(equipment_id)
        if item.status != "available":
            raise ConflictError(f"Equipment is not available (status: {item.status})")

        now = datetime.now(timezone.utc)
        await self._repo.add_checkout(
            equipment_id=equipment_id,
            user_id=data.user_id,
            user_name=data.user_name,
            project_id=data.project_id,
            project_name=data.project_name,
            checked_out_at=now,
            checkout_notes=data.notes,
        )
        updated = await self._repo.update(
            equipment_id,
            status="checked_out",
            checked_out_to_user_id=data.user_id,
            checked_out_to_user_name=data.user_name,
            current_project_id=data.project_id,
            current_project_name=data.project_name,
            checked_out_at=now,
            expected_return_date=data.expected_return_date,
        )
        logger.info("Equipment %s checked out to %s", equipment_id, data.user_id)
        return updated  # type: ignore[return-value]

    async def return_equipment(self, equipment_id: str, data: ReturnRequest) -> Equipment:
        item = await self.get_equipment(equipment_id)
        if item.status != "checked_out":
            raise ConflictError("Equipment is not checked out")

        open_checkout = await self._repo.get_open_checkout(equipment_id)
        if open_checkout is not None:
            open_checkout.returned_at = datetime.now(timezone.utc)
            open_checkout.return_condition = data.condition
            open_checkout.return_notes = data.notes

        # Anything returned in poor shape goes to the shop first
        status = "maintenance" if data.condition == "poor" else "available"
        updated = await self._repo.update(
            equipment_id, status=status, condition=data.condition, **_CLEARED_CHECKOUT
        )
        logger.info("Equipment %s returned (%s) -> %s", equipment_id, data.condition, status)
        return updated  # type: ignore[return-value]

    async def list_checkouts(self, equipment_id: str) -> list[EquipmentCheckout]:
        await self.get_equipment(equipment_id)
        return await self._repo.list_checkouts(equipment_id)

    async def get_stats(self) -> EquipmentStats:
        counts = await self._repo.count_by_status()
        return EquipmentStats(
            total=sum(counts.values()),
            **{status: counts.get(status, 0) for status in EQUIPMENT_STATUSES},
        )
