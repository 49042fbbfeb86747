"""Daily AI usage counters (one row per org per UTC day)."""

from __future__ import annotations

from datetime import date

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from contractoros.domain.ai_usage import AIUsageDaily


class AIUsageRepository:
    def __init__(self, session: AsyncSession, org_id: str):
        self._session = session
        self._org_id = org_id

    async def get_for_date(self, usage_date: date) -> AIUsageDaily | None:
        result = await self._session.execute(
            select(AIUsageDaily)
            .where(AIUsageDaily.org_id == self._org_id)
            .where(AIUsageDaily.usage_date == usage_date)
        )
        return result.scalars().first()

    async def increment(
        self,
        usage_date: date,
        *,
        input_tokens: int,
        output_tokens: int,
        cost: float,
        model_key: str,
    ) -> AIUsageDaily:
        row = await self.get_for_date(usage_date)
        if row is None:
            row = AIUsageDaily(
                org_id=self._org_id,
                usage_date=usage_date,
                requests=0,
                input_tokens=0,
                output_tokens=0,
                cost=0.0,
                by_model={},
            )
            self._session.add(row)

        row.requests += 1
        row.input_tokens += input_tokens
        row.output_tokens += output_tokens
        row.cost += cost

        by_model = dict(row.by_model or {})
        entry = dict(by_model.get(model_key, {"requests": 0, "tokens": 0, "cost": 0.0}))
        entry["requests"] += 1
        entry["tokens"] += input_tokens + output_tokens
        entry["cost"] += cost
        by_model[model_key] = entry
        row.by_model = by_model  # reassign so the JSON column is flagged dirty

        await self._session.flush()
        return row
