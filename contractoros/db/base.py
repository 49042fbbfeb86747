"""Async SQLAlchemy engine, session factory, declarative Base, and FastAPI dependency."""


from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from contractoros.core.config import settings


def build_engine(url: str | None = None, **kwargs) -> AsyncEngine:
    """Engine for ``url`` (defaults to DATABASE_URL) with per-dialect connect args."""
    url = url or settings.database_url
    options: dict = {"pool_pre_ping": True, "echo": False, **kwargs}
    if url.startswith("sqlite"):
        # aiosqlite runs each connection on its own worker thread
        options.setdefault("connect_args", {"check_same_thread": False})
    return create_async_engine(url, **options)


def build_session_factory(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=bind,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


engine = build_engine()
async_session_factory = build_session_factory(engine)


class Base(DeclarativeBase):
    """All ORM models inherit from this base."""


async def create_all(bind: AsyncEngine | None = None) -> None:
    """Create missing tables. Local SQLite only; deployed databases use Alembic."""
    import contractoros.domain  # noqa: F401  register every model on Base.metadata

    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Yield an async database session; commit on success, roll back on error."""
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
