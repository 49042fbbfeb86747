"""Organization and user lookups. These sit above the tenant boundary."""

from __future__ import annotations

from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from contractoros.domain.organization import Organization
from contractoros.domain.user import User


class OrganizationRepository:
    def __init__(self, session: AsyncSession):
        self._session = session

    async def get_by_id(self, org_id: str) -> Organization | None:
        result = await self._session.execute(
            select(Organization)
            .where(Organization.id == org_id)
            .where(Organization.deleted_at.is_(None))
        )
        return result.scalars().first()

    async def create(self, **kwargs: Any) -> Organization:
        org = Organization(**kwargs)
        self._session.add(org)
        await self._session.flush()
        await self._session.refresh(org)
        return org


class UserRepository:
    def __init__(self, session: AsyncSession):
        self._session = session

    async def get_by_email(self, email: str) -> User | None:
        result = await self._session.execute(
            select(User).where(User.email == email.lower()).where(User.deleted_at.is_(None))
        )
        return result.scalars().first()

    async def create(self, **kwargs: Any) -> User:
        user = User(**kwargs)
        self._session.add(user)
        await self._session.flush()
        await self._session.refresh(user)
        return user
