"""Database configuration and session management.

This module constructs an asynchronous SQLAlchemy engine and session
factory for the application from ``DATABASE_URL``.  SQLite URLs are
upgraded to the ``aiosqlite`` driver and PostgreSQL URLs are normalised
to ``psycopg`` so the same setting works for local development and for
a hosted Postgres instance.
"""

from __future__ import annotations

import logging
from typing import Any, AsyncGenerator

from sqlalchemy.engine.url import make_url
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from focal.core.config import settings

logger = logging.getLogger(__name__)


def normalize_database_url(raw_url: str) -> str:
    """Return ``raw_url`` rewritten to use an async driver."""
    url_obj = make_url(raw_url)
    driver = url_obj.drivername or ""
    if driver == "sqlite":
        url_obj = url_obj.set(drivername="sqlite+aiosqlite")
    elif driver in {"postgresql", "postgres", "postgresql+psycopg2", "postgresql+asyncpg"}:
        q = dict(url_obj.query or {})
        # Always require SSL unless explicitly configured
        if not q.get("sslmode"):
            q["sslmode"] = "require"
        url_obj = url_obj.set(drivername="postgresql+psycopg", query=q)
    return url_obj.render_as_string(hide_password=False)


db_url = normalize_database_url(settings.DATABASE_URL)
engine_kwargs: dict[str, Any] = dict(echo=False, pool_pre_ping=True)

logger.info("Creating async engine with URL: %s", make_url(db_url).render_as_string(hide_password=True))
engine = create_async_engine(db_url, **engine_kwargs)

# Create session factory
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)

# Declarative base
Base = declarative_base()


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Dependency that yields a database session.

    Each session is scoped to the request and closed after use.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()


async def init_db() -> None:
    """Create all database tables defined on the declarative ``Base``."""
    async with engine.begin() as conn:
        # Import all models to ensure metadata is populated
        from focal.models import tables  # noqa: F401
        await conn.run_sync(Base.metadata.create_all)
