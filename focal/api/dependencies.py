"""Common dependencies for FastAPI routes.

Database sessions, the shared Redis client and the service objects the
routers need.  Tests swap these out through ``app.dependency_overrides``.
"""

from __future__ import annotations

from typing import AsyncGenerator

from fastapi import Depends
from redis import asyncio as aioredis
from sqlalchemy.ext.asyncio import AsyncSession

from focal.core.config import settings
from focal.core.database import get_db
from focal.services.quota_service import QuotaManager, RedisQuotaStore, SqlQuotaStore
from focal.services.receipt_service import ReceiptProcessingService

# -----------------------------------------------------------------------------
# Shared resources

_redis_client = None  # type: ignore


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Request-scoped session; overridden in tests."""
    async for session in get_db():
        yield session


async def get_redis_client():
    """Process-wide Redis client for the redis quota backend."""
    global _redis_client
    if _redis_client is None:
        _redis_client = aioredis.from_url(settings.REDIS_URL, decode_responses=True)
    return _redis_client


# -----------------------------------------------------------------------------
# Services


async def get_quota_manager(db: AsyncSession = Depends(get_db_session)) -> QuotaManager:
    """Quota manager over the store selected by ``QUOTA_BACKEND`` (``sql`` or ``redis``)."""
    if (settings.QUOTA_BACKEND or "sql").lower() == "redis":
        store = RedisQuotaStore(await get_redis_client(), settings.AI_QUOTA_WINDOW_SECONDS)
    else:
        store = SqlQuotaStore(db)
    return QuotaManager(store, limit=settings.AI_QUOTA_LIMIT, window_seconds=settings.AI_QUOTA_WINDOW_SECONDS)


async def get_receipt_service(
    db: AsyncSession = Depends(get_db_session),
    quota: QuotaManager = Depends(get_quota_manager),
) -> ReceiptProcessingService:
    return ReceiptProcessingService(db, quota)
