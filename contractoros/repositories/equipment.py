"""Equipment repository: inventory rows plus checkout history."""

from __future__ import annotations

from typing import Any, Optional

from sqlalchemy import func, select

from contractoros.domain.equipment import Equipment, EquipmentCheckout
from contractoros.repositories.base import BaseRepository


class EquipmentRepository(BaseRepository[Equipment]):
    model = Equipment

    async def list_filtered(
        self, *, project_id: Optional[str] = None, status: Optional[str] = None
    ) -> list[Equipment]:
        q = self._base_query()
        if project_id:
            q = q.where(Equipment.current_project_id == project_id)
        if status:
            q = q.where(Equipment.status == status)
        q = q.order_by(Equipment.name.asc())
        return list((await self._session.execute(q)).scalars().all())

    async def count_by_status(self) -> dict[str, int]:
        sub = self._base_query().subquery()
        rows = await self._session.execute(
            select(sub.c.status, func.count()).group_by(sub.c.status)
        )
        return {status: count for status, count in rows.all()}

    async def add_checkout(self, **kwargs: Any) -> EquipmentCheckout:
        record = EquipmentCheckout(org_id=self._org_id, **kwargs)
        self._session.add(record)
        await self._session.flush()
        return record

    async def get_open_checkout(self, equipment_id: str) -> EquipmentCheckout | None:
        result = await self._session.execute(
            select(EquipmentCheckout)
            .where(EquipmentCheckout.org_id == self._org_id)
            .where(EquipmentCheckout.equipment_id == equipment_id)
            .where(EquipmentCheckout.returned_at.is_(None))
            .order_by(EquipmentCheckout.checked_out_at.desc())
        )
        return result.scalars().first()

    async def list_checkouts(self, equipment_id: str) -> list[EquipmentCheckout]:
        result = await self._session.execute(
            select(EquipmentCheckout)
            .where(EquipmentCheckout.org_id == self._org_id)
            .where(EquipmentCheckout.equipment_id == equipment_id)
            .order_by(EquipmentCheckout.checked_out_at.desc())
        )
        return list(result.scalars().all())
