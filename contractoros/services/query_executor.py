"""Runs a :class:`ParsedQuery` against the tenant's tables.

Equality and range operators are pushed into SQL. ``contains`` and
``between`` are applied client-side after the fetch, which is over-fetched
(``min(limit * 3, 100)`` rows) and then trimmed to the requested limit.
"""

from __future__ import annotations

import logging
import time
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy import Date, inspect, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from contractoros.domain.daily_log import DAILY_LOG_CATEGORIES, DailyLog
from contractoros.domain.equipment import EQUIPMENT_CONDITIONS, EQUIPMENT_STATUSES, Equipment
from contractoros.domain.invoice import INVOICE_STATUSES, Invoice
from contractoros.domain.project import PROJECT_STATUSES, Project
from contractoros.schemas.query import AggregationResult, ParsedQuery, QueryFilter, QueryResult

logger = logging.getLogger(__name__)

ENTITY_MODELS: dict[str, type] = {
    "invoices": Invoice,
    "projects": Project,
    "dailyLogs": DailyLog,
    "equipment": Equipment,
}

COMMON_FIELD_MAPPINGS = {
    "created": "created_at",
    "updated": "updated_at",
}

FIELD_MAPPINGS: dict[str, dict[str, str]] = {
    "invoices": {
        "amount": "total",
        "total": "total",
        "client": "client_name",
        "due": "due_date",
        "paid": "paid_at",
        "issued": "issue_date",
        "balance": "amount_due",
        "project": "project_name",
        "name": "client_name",
    },
    "projects": {
        "client": "client_name",
        "type": "project_type",
        "start": "start_date",
        "end": "end_date",
        "value": "contract_value",
        "amount": "contract_value",
        "cost": "actual_cost",
        "project": "name",
    },
    "dailyLogs": {
        "date": "log_date",
        "author": "user_name",
        "project": "project_name",
        "crew": "crew_count",
        "hours": "hours_worked",
        "name": "title",
    },
    "equipment": {
        "value": "purchase_price",
        "amount": "purchase_price",
        "holder": "checked_out_to_user_name",
        "project": "current_project_name",
        "serial": "serial_number",
    },
}

FIELD_SUGGESTIONS: dict[str, dict[str, list[str]]] = {
    "invoices": {"status": list(INVOICE_STATUSES)},
    "projects": {
        "status": list(PROJECT_STATUSES),
        "project_type": ["residential", "commercial", "industrial", "renovation", "new_construction"],
    },
    "dailyLogs": {"category": list(DAILY_LOG_CATEGORIES)},
    "equipment": {"status": list(EQUIPMENT_STATUSES), "condition": list(EQUIPMENT_CONDITIONS)},
}

CLIENT_SIDE_OPERATORS = ("contains", "between")
MAX_CLIENT_SIDE_FETCH = 100


class UnknownFieldError(ValueError):
    pass


def map_field_name(field_name: str, entity: str) -> str:
    mapped = FIELD_MAPPINGS.get(entity, {}).get(field_name)
    if mapped:
        return mapped
    return COMMON_FIELD_MAPPINGS.get(field_name, field_name)


def _resolve_column(model: type, field_name: str, entity: str):
    column_name = map_field_name(field_name, entity)
    columns = inspect(model).columns
    if column_name not in columns:
        raise UnknownFieldError(f"Unknown field '{field_name}' for {entity}")
    return getattr(model, column_name), column_name


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float, Decimal)) and not isinstance(value, bool)


def _jsonable(value: Any) -> Any:
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


def serialize_row(row: Any) -> dict[str, Any]:
    """Column values of an ORM row, keyed by column name."""
    mapper = inspect(row).mapper
    return {
        attr.key: _jsonable(getattr(row, attr.key))
        for attr in mapper.column_attrs
        if attr.key not in ("org_id", "deleted_at")
    }


def _native_constraint(column, f: QueryFilter):
    op = f.operator
    if op == "eq":
        return column == f.value
    if op == "neq":
        return column != f.value
    if op == "gt":
        return column > f.value
    if op == "lt":
        return column < f.value
    if op == "gte":
        return column >= f.value
    if op == "lte":
        return column <= f.value
    if op == "in" and isinstance(f.value, list):
        return column.in_(f.value)
    if op == "not_in" and isinstance(f.value, list):
        return column.not_in(f.value)
    return None


def _matches_client_filter(row: dict[str, Any], column_name: str, f: QueryFilter) -> bool:
    value = row.get(column_name)
    if f.operator == "contains":
        if isinstance(value, str) and isinstance(f.value, str):
            return f.value.lower() in value.lower()
        return False
    # between
    if not _is_number(value) or not _is_number(f.value) or not _is_number(f.value2):
        return False
    return f.value <= value <= f.value2


def _bound(column, value: datetime):
    if isinstance(column.type, Date) and isinstance(value, datetime):
        return value.date()
    return value


def _error_suggestion(message: str) -> Optional[str]:
    lowered = message.lower()
    if "index" in lowered:
        return "This query requires a database index."
    if "permission" in lowered:
        return "You may not have permission to access this data."
    return None


class QueryExecutor:
    def __init__(self, session: AsyncSession):
        self._session = session

    async def execute_query(self, parsed: ParsedQuery, org_id: Optional[str]) -> QueryResult:
        started = time.perf_counter()

        def _elapsed() -> float:
            return round((time.perf_counter() - started) * 1000, 2)

        def _fail(error: str, suggestion: Optional[str] = None) -> QueryResult:
            return QueryResult(
                success=False,
                query=parsed,
                execution_time_ms=_elapsed(),
                error=error,
                suggestion=suggestion,
            )

        if not org_id:
            return _fail("Organization ID is required")

        model = ENTITY_MODELS.get(parsed.entity)
        if model is None:
            return _fail(f"Unknown entity type: {parsed.entity}")

        try:
            stmt = select(model).where(model.org_id == org_id).where(model.deleted_at.is_(None))

            client_filters: list[tuple[str, QueryFilter]] = []
            for f in parsed.filters:
                column, column_name = _resolve_column(model, f.field, parsed.entity)
                if f.operator in CLIENT_SIDE_OPERATORS:
                    client_filters.append((column_name, f))
                    continue
                constraint = _native_constraint(column, f)
                if constraint is not None:
                    stmt = stmt.where(constraint)

            if parsed.date_range:
                column, _ = _resolve_column(model, parsed.date_range.field, parsed.entity)
                stmt = stmt.where(column >= _bound(column, parsed.date_range.start))
                stmt = stmt.where(column <= _bound(column, parsed.date_range.end))

            if parsed.sort:
                column, _ = _resolve_column(model, parsed.sort.field, parsed.entity)
                stmt = stmt.order_by(column.asc() if parsed.sort.direction == "asc" else column.desc())

            limit = parsed.limit
            fetch = min(limit * 3, MAX_CLIENT_SIDE_FETCH) if client_filters else limit
            stmt = stmt.limit(fetch)

            rows = (await self._session.execute(stmt)).scalars().all()
        except UnknownFieldError as exc:
            return _fail(str(exc))
        except SQLAlchemyError as exc:
            logger.exception("Query on %s failed for org %s", parsed.entity, org_id)
            return _fail(str(exc), _error_suggestion(str(exc)))

        data = [serialize_row(row) for row in rows]
        if client_filters:
            data = [
                row
                for row in data
                if all(_matches_client_filter(row, name, f) for name, f in client_filters)
            ][:limit]

        logger.debug(
            "Query %s org=%s returned %d row(s) (client filters=%d)",
            parsed.entity, org_id, len(data), len(client_filters),
        )
        return QueryResult(
            success=True,
            data=data,
            total_count=len(data),
            has_more=len(data) >= limit,
            query=parsed,
            execution_time_ms=_elapsed(),
        )

    async def execute_aggregation(self, parsed: ParsedQuery, org_id: Optional[str]) -> AggregationResult:
        if not parsed.aggregation:
            return AggregationResult(success=False, error="No aggregation specified")

        result = await self.execute_query(parsed, org_id)
        if not result.success:
            return AggregationResult(success=False, error=result.error)

        agg_type = parsed.aggregation.type
        if agg_type == "count":
            return AggregationResult(success=True, value=len(result.data))

        field_errors = {
            "sum": "Sum requires a field",
            "avg": "Average requires a field",
            "min": "Min requires a field",
            "max": "Max requires a field",
        }
        if agg_type not in field_errors:
            return AggregationResult(success=False, error=f"Unknown aggregation type: {agg_type}")
        if not parsed.aggregation.field:
            return AggregationResult(success=False, error=field_errors[agg_type])

        column_name = map_field_name(parsed.aggregation.field, parsed.entity)
        numbers = [
            row[column_name] for row in result.data if _is_number(row.get(column_name))
        ]

        if agg_type == "sum":
            value = sum(numbers)
        elif agg_type == "avg":
            # Rows with no numeric value count as zero
            value = sum(numbers) / len(result.data) if result.data else 0
        elif agg_type == "min":
            value = min(numbers) if numbers else 0
        else:
            value = max(numbers) if numbers else 0
        return AggregationResult(success=True, value=float(value))


def get_field_suggestions(entity: str, field_name: str) -> list[str]:
    return list(FIELD_SUGGESTIONS.get(entity, {}).get(field_name, []))
