"""Tests for running parsed queries against the tenant's tables."""
from datetime import datetime, time, timedelta, timezone

import pytest

from contractoros.schemas.equipment import CheckoutRequest, EquipmentCreate
from contractoros.schemas.invoice import InvoiceCreate, LineItem
from contractoros.schemas.query import (
    ParsedQuery,
    QueryAggregation,
    QueryDateRange,
    QueryFilter,
    QuerySort,
)
from contractoros.services.equipment import EquipmentService
from contractoros.services.invoice import InvoiceService
from contractoros.services.query_executor import (
    QueryExecutor,
    get_field_suggestions,
    map_field_name,
)

ORG = "org-1"


async def add_invoice(service: InvoiceService, client: str, amount: int, send: bool = True):
    invoice = await service.create_invoice(
        InvoiceCreate(client_name=client, line_items=[LineItem(description="work", unit_price=amount)])
    )
    if send:
        await service.send_invoice(invoice.id)
    return invoice


@pytest.fixture
async def seeded(session):
    service = InvoiceService(session, ORG)
    await add_invoice(service, "Smith Homes", 1000)
    await add_invoice(service, "smith & sons", 6000)
    await add_invoice(service, "Jones Build", 8000, send=False)
    await add_invoice(InvoiceService(session, "org-2"), "Smith Homes", 9000, send=False)
    return session


@pytest.fixture
def executor(seeded) -> QueryExecutor:
    return QueryExecutor(seeded)


def query(*filters: QueryFilter, **kwargs) -> ParsedQuery:
    return ParsedQuery(entity=kwargs.pop("entity", "invoices"), filters=list(filters), **kwargs)


def totals(result) -> list[float]:
    return sorted(row["total"] for row in result.data)


class TestErrors:
    async def test_org_required(self, executor):
        result = await executor.execute_query(query(), None)
        assert not result.success
        assert result.error == "Organization ID is required"

    async def test_unknown_entity(self, executor):
        result = await executor.execute_query(query(entity="widgets"), ORG)
        assert result.error == "Unknown entity type: widgets"

    async def test_unknown_field(self, executor):
        result = await executor.execute_query(
            query(QueryFilter(field="color", operator="eq", value="red")), ORG
        )
        assert not result.success
        assert result.error == "Unknown field 'color' for invoices"


class TestFilters:
    async def test_only_own_org(self, executor):
        result = await executor.execute_query(query(), ORG)
        assert result.success
        assert totals(result) == [1000.0, 6000.0, 8000.0]
        assert all("org_id" not in row for row in result.data)

    async def test_status_equality(self, executor):
        result = await executor.execute_query(
            query(QueryFilter(field="status", operator="eq", value="sent")), ORG
        )
        assert totals(result) == [1000.0, 6000.0]

    async def test_amount_maps_to_total(self, executor):
        result = await executor.execute_query(
            query(QueryFilter(field="amount", operator="gt", value=5000)), ORG
        )
        assert totals(result) == [6000.0, 8000.0]

    async def test_contains_is_case_insensitive(self, executor):
        result = await executor.execute_query(
            query(QueryFilter(field="client", operator="contains", value="SMITH")), ORG
        )
        assert totals(result) == [1000.0, 6000.0]

    async def test_between(self, executor):
        result = await executor.execute_query(
            query(QueryFilter(field="amount", operator="between", value=500, value2=7000)), ORG
        )
        assert totals(result) == [1000.0, 6000.0]

    async def test_in(self, executor):
        result = await executor.execute_query(
            query(QueryFilter(field="client", operator="in", value=["Jones Build", "Nobody"])), ORG
        )
        assert totals(result) == [8000.0]

    async def test_client_side_filters_are_trimmed_to_limit(self, executor):
        result = await executor.execute_query(
            query(QueryFilter(field="client", operator="contains", value="smith"), limit=1), ORG
        )
        assert len(result.data) == 1
        assert result.has_more is True

    async def test_date_range_on_due_date(self, executor):
        today = datetime.now(timezone.utc).date()
        start = datetime.combine(today, time.min)

        in_range = await executor.execute_query(
            query(date_range=QueryDateRange(field="due", start=start, end=start + timedelta(days=31))),
            ORG,
        )
        out_of_range = await executor.execute_query(
            query(date_range=QueryDateRange(field="due", start=start + timedelta(days=40), end=start + timedelta(days=50))),
            ORG,
        )
        assert len(in_range.data) == 3
        assert out_of_range.data == []


class TestSortAndLimit:
    async def test_sort_and_has_more(self, executor):
        result = await executor.execute_query(
            query(sort=QuerySort(field="amount", direction="desc"), limit=2), ORG
        )
        assert [row["total"] for row in result.data] == [8000.0, 6000.0]
        assert result.total_count == 2
        assert result.has_more is True

    async def test_has_more_false_when_short(self, executor):
        result = await executor.execute_query(query(limit=10), ORG)
        assert result.has_more is False


class TestAggregation:
    async def test_count(self, executor):
        result = await executor.execute_aggregation(
            query(QueryFilter(field="status", operator="eq", value="sent"), aggregation=QueryAggregation(type="count")),
            ORG,
        )
        assert result.success
        assert result.value == 2

    @pytest.mark.parametrize(
        "agg_type,expected",
        [("sum", 15000.0), ("avg", 5000.0), ("min", 1000.0), ("max", 8000.0)],
    )
    async def test_numeric(self, executor, agg_type, expected):
        result = await executor.execute_aggregation(
            query(aggregation=QueryAggregation(type=agg_type, field="amount")), ORG
        )
        assert result.value == expected

    async def test_sum_requires_field(self, executor):
        result = await executor.execute_aggregation(query(aggregation=QueryAggregation(type="sum")), ORG)
        assert not result.success
        assert result.error == "Sum requires a field"

    async def test_missing_aggregation(self, executor):
        result = await executor.execute_aggregation(query(), ORG)
        assert result.error == "No aggregation specified"

    async def test_unknown_aggregation(self, executor):
        result = await executor.execute_aggregation(
            query(aggregation=QueryAggregation(type="median", field="amount")), ORG
        )
        assert result.error == "Unknown aggregation type: median"


async def test_equipment_holder_query(session):
    equipment = EquipmentService(session, ORG)
    item = await equipment.create_equipment(EquipmentCreate(name="Skid steer"))
    await equipment.create_equipment(EquipmentCreate(name="Ladder"))
    await equipment.checkout(item.id, CheckoutRequest(user_id="u1", user_name="Eddie Field"))

    result = await QueryExecutor(session).execute_query(
        ParsedQuery(
            entity="equipment",
            filters=[QueryFilter(field="holder", operator="contains", value="eddie")],
        ),
        ORG,
    )

    assert [row["name"] for row in result.data] == ["Skid steer"]


def test_field_mapping():
    assert map_field_name("amount", "invoices") == "total"
    assert map_field_name("date", "dailyLogs") == "log_date"
    assert map_field_name("created", "projects") == "created_at"
    assert map_field_name("status", "equipment") == "status"


def test_field_suggestions():
    assert "overdue" in get_field_suggestions("invoices", "status")
    assert "poor" in get_field_suggestions("equipment", "condition")
    assert get_field_suggestions("invoices", "color") == []
