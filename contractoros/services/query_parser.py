"""Rule-based natural-language query parser.

Turns text such as "overdue invoices over $5,000 for Smith" into a
:class:`ParsedQuery` the query executor can run. Field names emitted here are
logical names (``amount``, ``client``, ``due``); the executor maps them to
columns per entity.

Examples::

    "show overdue invoices"   -> invoices, status eq overdue
    "invoices over $5k"       -> invoices, amount gt 5000
    "projects for Smith"      -> projects, client contains "Smith"
"""

from __future__ import annotations

import re
from datetime import datetime, time, timedelta
from typing import Optional

from contractoros.schemas.query import (
    ParsedQuery,
    QueryAggregation,
    QueryDateRange,
    QueryFilter,
    QuerySort,
)

DEFAULT_LIMIT = 25
MAX_LIMIT = 1000

# Order matters: the first entity with a matching keyword wins.
ENTITY_KEYWORDS: dict[str, list[str]] = {
    "invoices": ["invoice", "invoices", "bill", "bills", "payment", "payments"],
    "dailyLogs": ["daily log", "daily logs", "log", "logs", "report", "reports", "journal"],
    "equipment": ["equipment", "tool", "tools", "machine", "machines", "gear"],
    "projects": ["project", "projects", "job", "jobs"],
}

STATUS_KEYWORDS: dict[str, dict[str, str]] = {
    "invoices": {
        "overdue": "overdue",
        "past due": "overdue",
        "late": "overdue",
        "unpaid": "sent",
        "outstanding": "sent",
        "pending": "draft",
        "partially paid": "partial",
        "paid": "paid",
        "draft": "draft",
        "void": "void",
    },
    "projects": {
        "active": "ACTIVE",
        "ongoing": "ACTIVE",
        "in progress": "ACTIVE",
        "completed": "COMPLETED",
        "finished": "COMPLETED",
        "done": "COMPLETED",
        "on hold": "ON_HOLD",
        "paused": "ON_HOLD",
        "cancelled": "CANCELLED",
        "planning": "PLANNING",
    },
    "equipment": {
        "available": "available",
        "checked out": "checked_out",
        "in use": "checked_out",
        "maintenance": "maintenance",
        "repair": "maintenance",
        "retired": "retired",
    },
    "dailyLogs": {},
}

DAILY_LOG_CATEGORY_KEYWORDS: dict[str, str] = {
    "safety": "safety",
    "issue": "issue",
    "problem": "issue",
    "delivery": "delivery",
    "deliveries": "delivery",
    "inspection": "inspection",
    "weather": "weather",
    "progress": "progress",
}

AMOUNT_ENTITIES = {"invoices": "amount", "projects": "budget", "equipment": "value"}

DATE_FIELDS: dict[str, str] = {
    "invoices": "due",
    "projects": "start",
    "dailyLogs": "date",
    "equipment": "created",
}

PERIOD_PATTERNS: list[tuple[re.Pattern, str]] = [
    (re.compile(r"\btoday\b"), "today"),
    (re.compile(r"\byesterday\b"), "yesterday"),
    (re.compile(r"\btomorrow\b"), "tomorrow"),
    (re.compile(r"\bthis week\b"), "this_week"),
    (re.compile(r"\blast week\b"), "last_week"),
    (re.compile(r"\bnext week\b"), "next_week"),
    (re.compile(r"\bthis month\b"), "this_month"),
    (re.compile(r"\blast month\b"), "last_month"),
    (re.compile(r"\bthis year\b"), "this_year"),
    (re.compile(r"\blast 30 days\b"), "last_30_days"),
    (re.compile(r"\blast 90 days\b"), "last_90_days"),
    (re.compile(r"\bpast month\b"), "last_30_days"),
    (re.compile(r"\brecent\b"), "last_30_days"),
]

SORT_FIELD_WORDS: dict[str, str] = {
    "date": "created",
    "amount": "amount",
    "name": "name",
    "status": "status",
    "due": "due",
    "budget": "budget",
    "created": "created",
    "updated": "updated",
}

OPERATOR_TEXT: dict[str, str] = {
    "eq": "equals",
    "neq": "not equals",
    "gt": "greater than",
    "lt": "less than",
    "gte": "at least",
    "lte": "at most",
    "contains": "containing",
    "in": "in",
    "not_in": "not in",
    "between": "between",
}

_AMOUNT = r"\$?\s*([0-9][0-9,]*(?:\.[0-9]+)?\s*k?)"


# ---------------------------------------------------------------------------
# Detection helpers
# ---------------------------------------------------------------------------

def detect_entity(text: str) -> Optional[tuple[str, float]]:
    lower = text.lower()
    for entity, keywords in ENTITY_KEYWORDS.items():
        for keyword in keywords:
            if re.search(rf"\b{re.escape(keyword)}\b", lower):
                exact = f" {keyword}" in lower or lower.startswith(keyword)
                return entity, 0.95 if exact else 0.8
    return None


def parse_amount(text: str) -> Optional[float]:
    """Parse "$5,000", "5000", "5k", "2.5K" or "300 dollars" into a number."""
    cleaned = text.strip().lower().replace("$", "").replace(",", "")
    cleaned = re.sub(r"\s*dollars?$", "", cleaned).strip()
    match = re.fullmatch(r"(\d+(?:\.\d+)?)\s*(k?)", cleaned)
    if not match:
        return None
    value = float(match.group(1))
    return value * 1000 if match.group(2) else value


def detect_status_filter(text: str, entity: str) -> Optional[QueryFilter]:
    lower = text.lower()
    for keyword, value in STATUS_KEYWORDS.get(entity, {}).items():
        if re.search(rf"\b{re.escape(keyword)}\b", lower):
            return QueryFilter(field="status", operator="eq", value=value)
    if entity == "dailyLogs":
        for keyword, category in DAILY_LOG_CATEGORY_KEYWORDS.items():
            if re.search(rf"\b{keyword}\b", lower):
                return QueryFilter(field="category", operator="eq", value=category)
    return None


def detect_amount_filter(text: str, entity: str) -> Optional[QueryFilter]:
    field_name = AMOUNT_ENTITIES.get(entity)
    if not field_name:
        return None

    between = re.search(rf"between\s*{_AMOUNT}\s*(?:and|to|-)\s*{_AMOUNT}", text, re.I)
    if between:
        low, high = parse_amount(between.group(1)), parse_amount(between.group(2))
        if low is not None and high is not None:
            return QueryFilter(
                field=field_name, operator="between", value=min(low, high), value2=max(low, high)
            )

    patterns = [
        (r"(?:over|more than|greater than|above|exceeding|>)", "gt"),
        (r"(?:under|less than|below|<)", "lt"),
        (r"(?:at least|minimum|min)", "gte"),
        (r"(?:at most|maximum|max)", "lte"),
    ]
    for prefix, operator in patterns:
        match = re.search(rf"{prefix}\s*{_AMOUNT}", text, re.I)
        if match:
            amount = parse_amount(match.group(1))
            if amount is not None:
                return QueryFilter(field=field_name, operator=operator, value=amount)
    return None


def get_period_range(period: str, now: Optional[datetime] = None) -> Optional[tuple[datetime, datetime]]:
    now = now or datetime.now()
    today = datetime.combine(now.date(), time.min)
    day = timedelta(days=1)
    end_of = lambda start, days: start + timedelta(days=days) - timedelta(microseconds=1)  # noqa: E731

    # Weeks start on Sunday
    start_of_week = today - timedelta(days=(today.weekday() + 1) % 7)

    if period == "today":
        return today, end_of(today, 1)
    if period == "yesterday":
        return today - day, end_of(today - day, 1)
    if period == "tomorrow":
        return today + day, end_of(today + day, 1)
    if period == "this_week":
        return start_of_week, end_of(start_of_week, 7)
    if period == "last_week":
        start = start_of_week - timedelta(days=7)
        return start, end_of(start, 7)
    if period == "next_week":
        start = start_of_week + timedelta(days=7)
        return start, end_of(start, 7)
    if period == "this_month":
        start = today.replace(day=1)
        next_month = (start + timedelta(days=32)).replace(day=1)
        return start, next_month - timedelta(microseconds=1)
    if period == "last_month":
        this_month = today.replace(day=1)
        start = (this_month - day).replace(day=1)
        return start, this_month - timedelta(microseconds=1)
    if period == "this_year":
        start = today.replace(month=1, day=1)
        return start, start.replace(year=start.year + 1) - timedelta(microseconds=1)
    if period == "last_30_days":
        return today - timedelta(days=30), now
    if period == "last_90_days":
        return today - timedelta(days=90), now
    return None


def detect_date_range(text: str, entity: str, now: Optional[datetime] = None) -> Optional[QueryDateRange]:
    lower = text.lower()
    date_field = DATE_FIELDS.get(entity, "created")
    date_range: Optional[QueryDateRange] = None

    for pattern, period in PERIOD_PATTERNS:
        if pattern.search(lower):
            bounds = get_period_range(period, now)
            if bounds:
                date_range = QueryDateRange(field=date_field, start=bounds[0], end=bounds[1])
                break

    if entity == "invoices" and "due soon" in lower:
        current = now or datetime.now()
        date_range = QueryDateRange(field="due", start=current, end=current + timedelta(days=7))

    return date_range


def detect_name_filter(text: str, entity: str) -> Optional[QueryFilter]:
    match = re.search(
        r"\b(?:for|from|client|named|by)\s+[\"']?([A-Z][a-z]+(?:\s+[A-Z][a-z]+)?)[\"']?", text
    )
    if match:
        name = match.group(1).strip()
        if entity in ("projects", "invoices"):
            return QueryFilter(field="client", operator="contains", value=name)
        if entity == "dailyLogs":
            return QueryFilter(field="author", operator="contains", value=name)
        if entity == "equipment":
            return QueryFilter(field="holder", operator="contains", value=name)

    project = re.search(r"\bproject\s+[\"']?([^\"']+?)[\"']?(?:\s|$)", text, re.I)
    if project and entity != "projects":
        return QueryFilter(field="project", operator="contains", value=project.group(1).strip())
    return None


def detect_sort(text: str, entity: str) -> Optional[QuerySort]:
    lower = text.lower()
    amount_field = AMOUNT_ENTITIES.get(entity, "amount")

    if any(w in lower for w in ("newest", "most recent", "latest")):
        return QuerySort(field="created", direction="desc")
    if any(w in lower for w in ("oldest", "earliest")):
        return QuerySort(field="created", direction="asc")
    if any(w in lower for w in ("highest", "largest", "biggest")):
        return QuerySort(field=amount_field, direction="desc")
    if any(w in lower for w in ("lowest", "smallest")):
        return QuerySort(field=amount_field, direction="asc")

    by_field = re.search(r"(?:sort(?:ed)?|order(?:ed)?|by)\s+(\w+)", lower)
    if by_field and by_field.group(1) in SORT_FIELD_WORDS:
        word = by_field.group(1)
        direction = "asc" if word in ("name", "status") else "desc"
        return QuerySort(field=SORT_FIELD_WORDS[word], direction=direction)
    return None


def detect_limit(text: str) -> Optional[int]:
    lower = text.lower()
    match = re.search(r"(?:top|first|show|get|find)\s+(\d+)", lower)
    if match:
        return int(match.group(1))
    match = re.match(r"^(\d+)\s+\w+", lower)
    if match:
        return int(match.group(1))
    return None


def detect_aggregation(text: str, entity: str) -> Optional[QueryAggregation]:
    lower = text.lower()
    amount_field = AMOUNT_ENTITIES.get(entity, "amount")
    if any(p in lower for p in ("how many", "count of", "number of")):
        return QueryAggregation(type="count")
    if "total" in lower and any(w in lower for w in ("amount", "value", "sum")):
        return QueryAggregation(type="sum", field=amount_field)
    if "average" in lower or re.search(r"\bavg\b", lower):
        return QueryAggregation(type="avg", field=amount_field)
    return None


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def parse_natural_language_query(text: str, now: Optional[datetime] = None) -> ParsedQuery:
    original = text.strip()
    ambiguities: list[str] = []
    confidence = 1.0

    detected = detect_entity(original)
    if detected is None:
        ambiguities.append("Could not determine what type of data you want. Defaulting to invoices.")
        entity, entity_confidence = "invoices", 0.5
    else:
        entity, entity_confidence = detected
    confidence *= entity_confidence

    filters: list[QueryFilter] = []
    for detector in (detect_status_filter, detect_amount_filter, detect_name_filter):
        found = detector(original, entity)
        if found:
            filters.append(found)

    date_range = detect_date_range(original, entity, now)
    sort = detect_sort(original, entity)
    limit = detect_limit(original)
    aggregation = detect_aggregation(original, entity)

    if not filters and date_range is None and aggregation is None:
        confidence *= 0.7
        ambiguities.append("No specific filters detected. Showing all records.")

    suggestions: list[str] = []
    if not filters:
        suggestions.append(f'Try adding filters like "overdue {entity}" or "over $1000"')
    if not limit:
        suggestions.append('Add "top 10" or "first 5" to limit results')

    return ParsedQuery(
        entity=entity,
        filters=filters,
        sort=sort,
        limit=limit or DEFAULT_LIMIT,
        date_range=date_range,
        aggregation=aggregation,
        original_text=original,
        confidence=round(confidence, 2),
        ambiguities=ambiguities or None,
        suggestions=suggestions or None,
    )


def validate_parsed_query(query: ParsedQuery) -> tuple[bool, list[str]]:
    errors: list[str] = []
    if not query.entity:
        errors.append("No entity type specified")

    counts: dict[str, int] = {}
    for f in query.filters:
        counts[f.field] = counts.get(f.field, 0) + 1
    for field_name, count in counts.items():
        if count > 2:
            errors.append(f"Multiple conflicting filters on field: {field_name}")

    if query.limit < 1 or query.limit > MAX_LIMIT:
        errors.append(f"Limit must be between 1 and {MAX_LIMIT}")

    return not errors, errors


def describe_query(query: ParsedQuery) -> str:
    parts = [f"Searching for {query.entity}"]
    for f in query.filters:
        if f.operator == "between":
            parts.append(f"where {f.field} is between {f.value} and {f.value2}")
        else:
            parts.append(f'where {f.field} {OPERATOR_TEXT.get(f.operator, f.operator)} "{f.value}"')
    if query.date_range:
        parts.append(
            f"from {query.date_range.start.date().isoformat()} to {query.date_range.end.date().isoformat()}"
        )
    if query.sort:
        order = "newest first" if query.sort.direction == "desc" else "oldest first"
        parts.append(f"sorted by {query.sort.field} ({order})")
    if query.limit:
        parts.append(f"limited to {query.limit} results")
    return ", ".join(parts)
