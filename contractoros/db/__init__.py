"""Database package: engine factory, session factory, Base, schema bootstrap."""
from contractoros.db.base import (
    Base,
    async_session_factory,
    build_engine,
    build_session_factory,
    create_all,
    engine,
    get_db,
)

__all__ = [
    "Base",
    "async_session_factory",
    "build_engine",
    "build_session_factory",
    "create_all",
    "engine",
    "get_db",
]
