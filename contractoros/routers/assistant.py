"""AI assistant endpoints."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from contractoros.core.security import CurrentUser, get_current_user
from contractoros.db.base import get_db
from contractoros.schemas.assistant import AssistantRequest, AssistantResponse, UsageStatus
from contractoros.services.assistant import AssistantService

router = APIRouter(prefix="/assistant", tags=["Assistant"])


@router.post("", response_model=AssistantResponse)
async def ask_assistant(
    body: AssistantRequest,
    session: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    """Answer a question. 429 with ``resetAt`` once the org's daily budget is spent."""
    return await AssistantService(session, user).ask(body)


@router.get("/usage", response_model=UsageStatus)
async def assistant_usage(
    session: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    return await AssistantService(session, user).usage()
