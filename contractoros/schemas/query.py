"""Structured query intent and result schemas for the natural-language query feature."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import Field

from contractoros.schemas.common import CamelModel

QueryEntity = Literal["invoices", "projects", "dailyLogs", "equipment"]
FilterOperator = Literal[
    "eq", "neq", "gt", "lt", "gte", "lte", "in", "not_in", "contains", "between"
]
AggregationType = Literal["count", "sum", "avg", "min", "max"]


class QueryFilter(CamelModel):
    field: str
    operator: FilterOperator
    value: Any = None
    value2: Any = None


class QuerySort(CamelModel):
    field: str
    direction: Literal["asc", "desc"] = "desc"


class QueryDateRange(CamelModel):
    field: str
    start: datetime
    end: datetime


class QueryAggregation(CamelModel):
    type: str
    field: Optional[str] = None


class ParsedQuery(CamelModel):
    entity: str
    filters: list[QueryFilter] = Field(default_factory=list)
    sort: Optional[QuerySort] = None
    limit: int = 25
    date_range: Optional[QueryDateRange] = None
    aggregation: Optional[QueryAggregation] = None
    original_text: str = ""
    confidence: float = 1.0
    ambiguities: Optional[list[str]] = None
    suggestions: Optional[list[str]] = None


class QueryRequest(CamelModel):
    """Either free text or an already-structured query."""

    text: Optional[str] = None
    query: Optional[ParsedQuery] = None


class QueryResult(CamelModel):
    success: bool
    data: list[dict[str, Any]] = Field(default_factory=list)
    total_count: int = 0
    has_more: bool = False
    query: Optional[ParsedQuery] = None
    execution_time_ms: float = 0.0
    error: Optional[str] = None
    suggestion: Optional[str] = None
    description: Optional[str] = None


class AggregationResult(CamelModel):
    success: bool
    value: float = 0.0
    error: Optional[str] = None
