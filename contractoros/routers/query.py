"""Natural-language query endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from contractoros.core.exceptions import ValidationError
from contractoros.core.security import CurrentUser, get_current_user
from contractoros.db.base import get_db
from contractoros.schemas.query import AggregationResult, ParsedQuery, QueryRequest, QueryResult
from contractoros.services.query_executor import QueryExecutor, get_field_suggestions
from contractoros.services.query_parser import (
    describe_query,
    parse_natural_language_query,
    validate_parsed_query,
)

router = APIRouter(prefix="/query", tags=["Query"])


def _resolve(body: QueryRequest) -> ParsedQuery:
    if body.query is not None:
        return body.query
    if body.text and body.text.strip():
        return parse_natural_language_query(body.text)
    raise ValidationError("Either text or query is required")


@router.post("", response_model=QueryResult)
async def run_query(
    body: QueryRequest,
    session: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    parsed = _resolve(body)
    valid, errors = validate_parsed_query(parsed)
    if not valid:
        return QueryResult(success=False, query=parsed, error="; ".join(errors))

    result = await QueryExecutor(session).execute_query(parsed, user.org_id)
    result.description = describe_query(parsed)
    return result


@router.post("/aggregate", response_model=AggregationResult)
async def run_aggregation(
    body: QueryRequest,
    session: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    parsed = _resolve(body)
    return await QueryExecutor(session).execute_aggregation(parsed, user.org_id)


@router.get("/suggestions")
async def field_suggestions(
    entity: str = Query(...),
    field: str = Query(default="status"),
    user: CurrentUser = Depends(get_current_user),
):
    """Autocomplete values for ``field`` on ``entity``."""
    return {"entity": entity, "field": field, "suggestions": get_field_suggestions(entity, field)}
