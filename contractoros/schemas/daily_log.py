"""Daily log Pydantic schemas."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Any, Literal, Optional

from pydantic import Field

from contractoros.schemas.common import CamelModel

DailyLogCategory = Literal[
    "general",
    "progress",
    "issue",
    "safety",
    "weather",
    "delivery",
    "inspection",
    "client_interaction",
    "subcontractor",
    "equipment",
]


class WeatherInfo(CamelModel):
    condition: str
    temperature_high: Optional[float] = None
    temperature_low: Optional[float] = None
    notes: Optional[str] = None


class LogIssue(CamelModel):
    description: str
    severity: Literal["low", "medium", "high"] = "medium"
    resolved: bool = False


class LogPhoto(CamelModel):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    url: str
    caption: Optional[str] = None


class DailyLogCreate(CamelModel):
    project_id: str
    project_name: Optional[str] = None
    log_date: date
    category: DailyLogCategory = "general"
    title: str = Field(min_length=1)
    description: Optional[str] = None
    is_private: bool = False
    crew_count: Optional[int] = Field(default=None, ge=0)
    hours_worked: Optional[float] = Field(default=None, ge=0)
    weather: Optional[WeatherInfo] = None
    issues: list[LogIssue] = Field(default_factory=list)
    photos: list[LogPhoto] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)


class DailyLogUpdate(CamelModel):
    project_name: Optional[str] = None
    log_date: Optional[date] = None
    category: Optional[DailyLogCategory] = None
    title: Optional[str] = None
    description: Optional[str] = None
    is_private: Optional[bool] = None
    crew_count: Optional[int] = Field(default=None, ge=0)
    hours_worked: Optional[float] = Field(default=None, ge=0)
    weather: Optional[WeatherInfo] = None
    issues: Optional[list[LogIssue]] = None
    tags: Optional[list[str]] = None


class DailyLogOut(CamelModel):
    id: str
    org_id: str
    project_id: str
    project_name: Optional[str] = None
    user_id: str
    user_name: Optional[str] = None
    log_date: date
    category: str
    title: str
    description: Optional[str] = None
    is_private: bool
    crew_count: Optional[int] = None
    hours_worked: Optional[float] = None
    weather: Optional[dict[str, Any]] = None
    issues: list[dict[str, Any]] = Field(default_factory=list)
    photos: list[dict[str, Any]] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime


class DailySummary(CamelModel):
    log_date: date
    project_id: Optional[str] = None
    project_name: Optional[str] = None
    total_entries: int
    categories: dict[str, int]
    crew_count: int
    hours_worked: float
    issue_count: int
    photo_count: int
    weather: Optional[dict[str, Any]] = None


class LogDateRange(CamelModel):
    earliest: Optional[date] = None
    latest: Optional[date] = None
