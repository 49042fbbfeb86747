"""Project Pydantic schemas."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Literal, Optional

from pydantic import Field

from contractoros.schemas.common import CamelModel

ProjectStatus = Literal["PLANNING", "ACTIVE", "ON_HOLD", "COMPLETED", "CANCELLED"]


class ProjectCreate(CamelModel):
    name: str = Field(min_length=1)
    client_name: Optional[str] = None
    status: ProjectStatus = "PLANNING"
    project_type: Optional[str] = None
    address: Optional[str] = None
    budget: Optional[Decimal] = Field(default=None, ge=0)
    contract_value: Optional[Decimal] = Field(default=None, ge=0)
    actual_cost: Decimal = Field(default=Decimal("0"), ge=0)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    description: Optional[str] = None


class ProjectUpdate(CamelModel):
    name: Optional[str] = None
    client_name: Optional[str] = None
    status: Optional[ProjectStatus] = None
    project_type: Optional[str] = None
    address: Optional[str] = None
    budget: Optional[Decimal] = Field(default=None, ge=0)
    contract_value: Optional[Decimal] = Field(default=None, ge=0)
    actual_cost: Optional[Decimal] = Field(default=None, ge=0)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    description: Optional[str] = None


class ProjectOut(CamelModel):
    id: str
    org_id: str
    name: str
    client_name: Optional[str] = None
    status: str
    project_type: Optional[str] = None
    address: Optional[str] = None
    budget: Optional[float] = None
    contract_value: Optional[float] = None
    actual_cost: float
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    description: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class ProfitabilityOut(CamelModel):
    project_id: str
    contract_value: float
    actual_cost: float
    profit: float
    margin_percent: float
    rag_status: Literal["green", "amber", "red"]
    rag_label: str
