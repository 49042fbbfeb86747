"""Login and self-service sign-up."""

from __future__ import annotations

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from contractoros.core.exceptions import ConflictError, UnauthorizedError
from contractoros.core.roles import get_default_path
from contractoros.core.security import create_access_token, hash_password, verify_password
from contractoros.domain.user import User
from contractoros.repositories.account import OrganizationRepository, UserRepository
from contractoros.schemas.auth import RegisterRequest, TokenRequest, TokenResponse

logger = logging.getLogger(__name__)


def issue_token(user: User) -> TokenResponse:
    token = create_access_token(
        user_id=user.id,
        org_id=user.org_id,
        role=user.role,
        name=user.name,
        email=user.email,
    )
    return TokenResponse(
        access_token=token,
        user_id=user.id,
        org_id=user.org_id,
        role=user.role,
        default_path=get_default_path(user.role),
    )


class AuthService:
    def __init__(self, session: AsyncSession):
        self._orgs = OrganizationRepository(session)
        self._users = UserRepository(session)

    async def login(self, data: TokenRequest) -> TokenResponse:
        user = await self._users.get_by_email(data.email)
        if not user or not user.is_active or not verify_password(data.password, user.hashed_password):
            logger.info("Failed login for %s", data.email.lower())
            raise UnauthorizedError("Invalid email or password")
        return issue_token(user)

    async def register(self, data: RegisterRequest) -> TokenResponse:
        if await self._users.get_by_email(data.email):
            raise ConflictError("An account with this email already exists")

        org = await self._orgs.create(name=data.org_name)
        user = await self._users.create(
            org_id=org.id,
            email=data.email.lower(),
            name=data.name,
            role="OWNER",
            hashed_password=hash_password(data.password),
        )
        logger.info("Registered org %s with owner %s", org.id, user.id)
        return issue_token(user)
