"""Equipment Pydantic schemas."""

from __future__ import annotations

from datetime import date, datetime
from typing import Literal, Optional

from pydantic import Field

from contractoros.schemas.common import CamelModel

EquipmentStatus = Literal["available", "checked_out", "maintenance", "retired"]
EquipmentCondition = Literal["excellent", "good", "fair", "poor"]


class EquipmentCreate(CamelModel):
    name: str = Field(min_length=1)
    category: Optional[str] = None
    serial_number: Optional[str] = None
    status: EquipmentStatus = "available"
    condition: EquipmentCondition = "good"
    purchase_price: Optional[float] = Field(default=None, ge=0)
    notes: Optional[str] = None


class EquipmentUpdate(CamelModel):
    name: Optional[str] = None
    category: Optional[str] = None
    serial_number: Optional[str] = None
    status: Optional[EquipmentStatus] = None
    condition: Optional[EquipmentCondition] = None
    purchase_price: Optional[float] = Field(default=None, ge=0)
    notes: Optional[str] = None


class EquipmentOut(CamelModel):
    id: str
    org_id: str
    name: str
    category: Optional[str] = None
    serial_number: Optional[str] = None
    status: str
    condition: str
    purchase_price: Optional[float] = None
    notes: Optional[str] = None
    checked_out_to_user_id: Optional[str] = None
    checked_out_to_user_name: Optional[str] = None
    current_project_id: Optional[str] = None
    current_project_name: Optional[str] = None
    checked_out_at: Optional[datetime] = None
    expected_return_date: Optional[date] = None
    created_at: datetime
    updated_at: datetime


class CheckoutRequest(CamelModel):
    user_id: str
    user_name: Optional[str] = None
    project_id: Optional[str] = None
    project_name: Optional[str] = None
    notes: Optional[str] = None
    expected_return_date: Optional[date] = None


class ReturnRequest(CamelModel):
    condition: EquipmentCondition = "good"
    notes: Optional[str] = None


class CheckoutOut(CamelModel):
    id: str
    equipment_id: str
    user_id: str
    user_name: Optional[str] = None
    project_id: Optional[str] = None
    project_name: Optional[str] = None
    checked_out_at: datetime
    checkout_notes: Optional[str] = None
    returned_at: Optional[datetime] = None
    return_condition: Optional[str] = None
    return_notes: Optional[str] = None


class EquipmentStats(CamelModel):
    total: int = 0
    available: int = 0
    checked_out: int = 0
    maintenance: int = 0
    retired: int = 0
