"""AI assistant: budget check, provider call, usage accounting."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from contractoros.core.exceptions import RateLimitExceededError
from contractoros.core.security import CurrentUser
from contractoros.schemas.assistant import AssistantRequest, AssistantResponse, UsageOut, UsageStatus
from contractoros.services.ai_providers import ProviderManager
from contractoros.services.ai_usage import OrgUsageLimiter

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are the ContractorOS assistant for construction contractors. "
    "Answer questions about projects, invoices, daily logs, equipment and crews "
    "concisely. If you are unsure, say so instead of guessing."
)


class AssistantService:
    def __init__(
        self,
        session: AsyncSession,
        user: CurrentUser,
        providers: Optional[ProviderManager] = None,
        limiter: Optional[OrgUsageLimiter] = None,
    ):
        self._user = user
        self._providers = providers or ProviderManager()
        self._limiter = limiter or OrgUsageLimiter(session)

    async def usage(self) -> UsageStatus:
        return await self._limiter.check_rate_limit(self._user.org_id)

    async def ask(self, request: AssistantRequest) -> AssistantResponse:
        status = await self._limiter.check_rate_limit(self._user.org_id)
        if not status.allowed:
            seconds_left = (status.reset_at - datetime.now(timezone.utc)).total_seconds()
            raise RateLimitExceededError(
                status.reason or "Rate limit exceeded",
                reset_at=status.reset_at,
                retry_after=max(1, int(seconds_left)),
            )

        messages = [{"role": "system", "content": SYSTEM_PROMPT}]
        if request.context:
            messages.append({"role": "system", "content": f"Context:\n{request.context}"})
        messages.append({"role": "user", "content": request.message})

        result = await self._providers.complete(messages)
        await self._limiter.record_usage(
            self._user.org_id,
            input_tokens=result.input_tokens,
            output_tokens=result.output_tokens,
            estimated_cost=result.estimated_cost,
            model_key=result.model_key,
        )
        logger.info(
            "Assistant reply for org=%s via %s (%d tokens)",
            self._user.org_id, result.provider, result.input_tokens + result.output_tokens,
        )
        return AssistantResponse(
            reply=result.content,
            provider=result.provider,
            model=result.model,
            usage=UsageOut(
                input_tokens=result.input_tokens,
                output_tokens=result.output_tokens,
                estimated_cost=result.estimated_cost,
            ),
        )
