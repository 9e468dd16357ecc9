"""Sliding-window usage quota.

Every successful AI extraction appends a record keyed by
``(action, identifier)``.  A new operation is allowed while fewer than
``limit`` records fall inside the trailing window.  All timestamps are
epoch seconds, the unit the window is configured in; milliseconds only
appear at the HTTP boundary.

The check and the record are two separate calls, so concurrent requests
from the same user can overshoot the limit by the number of requests in
flight.  The quota is a soft, best-effort limit on AI spend, not a hard
resource guarantee.
"""

from __future__ import annotations

import logging
import math
import time
import uuid
from dataclasses import dataclass
from typing import Any, Callable, Optional, Protocol

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from focal.core.exceptions import QuotaExceededError
from focal.core.observability import sentry_breadcrumb
from focal.models.tables import QuotaRecord
from focal.utils.helpers import describe_hours, hours_until

logger = logging.getLogger(__name__)


class QuotaStore(Protocol):
    async def timestamps_since(self, action: str, identifier: str, since: float) -> list[float]: ...

    async def append(self, action: str, identifier: str, occurred_at: float) -> None: ...


class SqlQuotaStore:
    """Quota records kept in the ``quota_records`` table."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def timestamps_since(self, action: str, identifier: str, since: float) -> list[float]:
        q = select(QuotaRecord.occurred_at).where(
            QuotaRecord.action == action,
            QuotaRecord.identifier == identifier,
            QuotaRecord.occurred_at > since,
        )
        result = await self.db.execute(q)
        return [float(ts) for ts in result.scalars().all()]

    async def append(self, action: str, identifier: str, occurred_at: float) -> None:
        self.db.add(QuotaRecord(action=action, identifier=identifier, occurred_at=occurred_at))
        await self.db.commit()


class RedisQuotaStore:
    """Quota records kept in one Redis sorted set per ``(action, identifier)``.

    Members are random ids scored by epoch seconds.  Entries older than
    the window are trimmed on append and the key expires after a full
    idle window.
    """

    def __init__(self, client: Any, window_seconds: int) -> None:
        self.client = client
        self.window_seconds = window_seconds

    @staticmethod
    def key(action: str, identifier: str) -> str:
        return f"quota:{action}:{identifier}"

    async def timestamps_since(self, action: str, identifier: str, since: float) -> list[float]:
        rows = await self.client.zrangebyscore(self.key(action, identifier), f"({since}", "+inf", withscores=True)
        return [float(score) for _member, score in rows]

    async def append(self, action: str, identifier: str, occurred_at: float) -> None:
        key = self.key(action, identifier)
        pipe = self.client.pipeline()
        pipe.zadd(key, {uuid.uuid4().hex: occurred_at})
        pipe.zremrangebyscore(key, "-inf", occurred_at - self.window_seconds)
        pipe.expire(key, self.window_seconds)
        await pipe.execute()


@dataclass(frozen=True)
class QuotaUsage:
    count: int
    oldest: Optional[float]  # epoch seconds of the oldest record in the window


@dataclass(frozen=True)
class QuotaStatus:
    limit: int
    used: int
    remaining: int
    reset_at: float  # epoch seconds
    reset_in: int  # seconds


class QuotaManager:
    """Answers "may this identifier run another operation" for a sliding window."""

    def __init__(
        self,
        store: QuotaStore,
        *,
        limit: int,
        window_seconds: int,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.store = store
        self.limit = limit
        self.window_seconds = window_seconds
        self.clock = clock

    async def current_usage(self, action: str, identifier: str) -> QuotaUsage:
        now = self.clock()
        stamps = [ts for ts in await self.store.timestamps_since(action, identifier, now - self.window_seconds) if ts <= now]
        return QuotaUsage(count=len(stamps), oldest=min(stamps) if stamps else None)

    async def is_allowed(self, action: str, identifier: str) -> bool:
        usage = await self.current_usage(action, identifier)
        return usage.count < self.limit

    async def record_usage(self, action: str, identifier: str) -> None:
        await self.store.append(action, identifier, self.clock())
        logger.info("[quota] recorded action=%s identifier=%s", action, identifier)

    async def status(self, action: str, identifier: str) -> QuotaStatus:
        now = self.clock()
        usage = await self.current_usage(action, identifier)
        reset_at = (usage.oldest + self.window_seconds) if usage.oldest is not None else now + self.window_seconds
        return QuotaStatus(
            limit=self.limit,
            used=usage.count,
            remaining=max(0, self.limit - usage.count),
            reset_at=reset_at,
            reset_in=max(0, math.ceil(reset_at - now)),
        )

    async def enforce(self, action: str, identifier: str) -> None:
        """Raise ``QuotaExceededError`` when no operation is left in the window."""
        status = await self.status(action, identifier)
        if status.used < self.limit:
            return
        hours = hours_until(status.reset_at, self.clock())
        logger.warning(
            "[quota] denied action=%s identifier=%s used=%d limit=%d reset_in=%ds",
            action, identifier, status.used, status.limit, status.reset_in,
        )
        sentry_breadcrumb(
            category="quota",
            message="quota.denied",
            level="warning",
            data={"action": action, "used": status.used, "limit": status.limit},
        )
        raise QuotaExceededError(
            f"Daily AI scan limit reached ({status.used}/{status.limit} used). "
            f"Your quota will reset in approximately {describe_hours(hours)}. Try again later!",
            limit=status.limit,
            used=status.used,
            reset_at=status.reset_at,
        )
