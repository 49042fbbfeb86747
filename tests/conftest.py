"""
Global pytest configuration and fixtures.
"""
from __future__ import annotations

from datetime import timedelta
from typing import AsyncGenerator

import httpx
import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from contractoros.core.config import settings
from contractoros.core.security import CurrentUser, create_access_token
from contractoros.db.base import build_engine, build_session_factory, create_all, get_db

ORG_ID = "11111111-1111-1111-1111-111111111111"


@pytest.fixture
async def engine(tmp_path):
    """A fresh file-backed SQLite database per test."""
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    await create_all(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture
async def session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def owner() -> CurrentUser:
    return CurrentUser(user_id="user-owner", org_id=ORG_ID, role="OWNER", name="Olivia Owner")


@pytest.fixture
def pm() -> CurrentUser:
    return CurrentUser(user_id="user-pm", org_id=ORG_ID, role="PM", name="Pat Manager")


@pytest.fixture
def employee() -> CurrentUser:
    return CurrentUser(user_id="user-emp", org_id=ORG_ID, role="EMPLOYEE", name="Eddie Field")


@pytest.fixture
def other_employee() -> CurrentUser:
    return CurrentUser(user_id="user-emp-2", org_id=ORG_ID, role="EMPLOYEE", name="Erin Crew")


def bearer(user: CurrentUser, expires_delta: timedelta | None = None) -> dict[str, str]:
    token = create_access_token(
        user_id=user.user_id,
        org_id=user.org_id,
        role=user.role,
        name=user.name,
        expires_delta=expires_delta,
    )
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_headers():
    """Factory: ``auth_headers(user)`` -> Authorization header dict."""
    return bearer


@pytest.fixture
def app(session_factory, monkeypatch):
    """The real application wired to the per-test database, rate limiting off."""
    from contractoros.main import create_app

    monkeypatch.setattr(settings, "rate_limit_enabled", False)
    application = create_app()

    async def _get_test_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as s:
            try:
                yield s
                await s.commit()
            except Exception:
                await s.rollback()
                raise

    application.dependency_overrides[get_db] = _get_test_db
    application.state.audit_session_factory = session_factory
    return application


@pytest.fixture
async def client(app) -> AsyncGenerator[httpx.AsyncClient, None]:
    # ASGITransport keeps the app on the test's event loop and skips lifespan
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
