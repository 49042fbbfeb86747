"""Per-organization daily AI budget (requests, tokens and cost per UTC day)."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional

from cachetools import TTLCache
from sqlalchemy.ext.asyncio import AsyncSession

from contractoros.core.config import settings
from contractoros.domain.organization import (
    DEFAULT_DAILY_REQUEST_LIMIT,
    DEFAULT_DAILY_TOKEN_LIMIT,
)
from contractoros.repositories.account import OrganizationRepository
from contractoros.repositories.ai_usage import AIUsageRepository
from contractoros.schemas.assistant import RemainingBudget, UsageStatus

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UsageSnapshot:
    """Org budget settings plus today's counters, as cached between requests."""

    usage_date: date
    enable_assistant: bool
    daily_request_limit: int
    daily_token_limit: int
    daily_cost_limit: float
    requests: int = 0
    tokens: int = 0
    cost: float = 0.0


# Recording usage drops the org's entry; otherwise reads may lag by the TTL
usage_cache: TTLCache = TTLCache(maxsize=4096, ttl=settings.usage_cache_ttl_seconds)


def next_utc_midnight(now: Optional[datetime] = None) -> datetime:
    now = now or datetime.now(timezone.utc)
    tomorrow = now.astimezone(timezone.utc).date() + timedelta(days=1)
    return datetime.combine(tomorrow, time.min, tzinfo=timezone.utc)


class OrgUsageLimiter:
    def __init__(self, session: AsyncSession, cache: TTLCache | None = None):
        self._session = session
        self._cache = cache if cache is not None else usage_cache

    async def _snapshot(self, org_id: str, today: date) -> UsageSnapshot:
        cached = self._cache.get(org_id)
        if cached is not None and cached.usage_date == today:
            return cached

        org = await OrganizationRepository(self._session).get_by_id(org_id)
        usage = await AIUsageRepository(self._session, org_id).get_for_date(today)
        snapshot = UsageSnapshot(
            usage_date=today,
            enable_assistant=org.enable_assistant if org else True,
            daily_request_limit=org.daily_request_limit if org else DEFAULT_DAILY_REQUEST_LIMIT,
            daily_token_limit=org.daily_token_limit if org else DEFAULT_DAILY_TOKEN_LIMIT,
            daily_cost_limit=org.daily_cost_limit if org else 0.0,
            requests=usage.requests if usage else 0,
            tokens=usage.total_tokens if usage else 0,
            cost=usage.cost if usage else 0.0,
        )
        self._cache[org_id] = snapshot
        return snapshot

    async def check_rate_limit(self, org_id: str, now: Optional[datetime] = None) -> UsageStatus:
        now = now or datetime.now(timezone.utc)
        snap = await self._snapshot(org_id, now.astimezone(timezone.utc).date())

        cost_limited = snap.daily_cost_limit > 0
        remaining = RemainingBudget(
            requests=max(0, snap.daily_request_limit - snap.requests),
            tokens=max(0, snap.daily_token_limit - snap.tokens),
            cost=round(max(0.0, snap.daily_cost_limit - snap.cost), 4) if cost_limited else None,
        )

        reason = None
        if not snap.enable_assistant:
            reason = "AI assistant is disabled for this organization"
        elif snap.requests >= snap.daily_request_limit:
            reason = "Daily request limit reached"
        elif snap.tokens >= snap.daily_token_limit:
            reason = "Daily token limit reached"
        elif cost_limited and snap.cost >= snap.daily_cost_limit:
            reason = "Daily cost limit reached"

        if reason:
            logger.info("AI budget check denied org=%s: %s", org_id, reason)
        return UsageStatus(
            allowed=reason is None,
            remaining=remaining,
            reset_at=next_utc_midnight(now),
            reason=reason,
        )

    async def record_usage(
        self,
        org_id: str,
        *,
        input_tokens: int,
        output_tokens: int,
        estimated_cost: float,
        model_key: str,
        now: Optional[datetime] = None,
    ) -> None:
        now = now or datetime.now(timezone.utc)
        await AIUsageRepository(self._session, org_id).increment(
            now.astimezone(timezone.utc).date(),
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            cost=estimated_cost,
            model_key=model_key,
        )
        self._cache.pop(org_id, None)
        logger.debug(
            "Recorded AI usage org=%s model=%s tokens=%d cost=%.4f",
            org_id, model_key, input_tokens + output_tokens, estimated_cost,
        )
