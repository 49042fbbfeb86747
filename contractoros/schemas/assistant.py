"""AI assistant Pydantic schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import Field

from contractoros.schemas.common import CamelModel


class AssistantRequest(CamelModel):
    message: str = Field(min_length=1, max_length=8000)
    context: Optional[str] = None


class UsageOut(CamelModel):
    input_tokens: int
    output_tokens: int
    estimated_cost: float


class AssistantResponse(CamelModel):
    reply: str
    provider: str
    model: str
    usage: UsageOut


class RemainingBudget(CamelModel):
    requests: int
    tokens: int
    cost: Optional[float] = None


class UsageStatus(CamelModel):
    allowed: bool
    remaining: RemainingBudget
    reset_at: datetime
    reason: Optional[str] = None
