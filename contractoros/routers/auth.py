"""Token issue and sign-up."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from contractoros.db.base import get_db
from contractoros.schemas.auth import RegisterRequest, TokenRequest, TokenResponse
from contractoros.services.auth import AuthService

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post("/token", response_model=TokenResponse)
async def issue_token(body: TokenRequest, session: AsyncSession = Depends(get_db)):
    """Exchange email + password for a bearer token."""
    return await AuthService(session).login(body)


@router.post("/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
async def register(body: RegisterRequest, session: AsyncSession = Depends(get_db)):
    """Create an organization and its OWNER user."""
    return await AuthService(session).register(body)
