from __future__ import annotations

import pytest

from focal.core.exceptions import QuotaExceededError
from focal.services.quota_service import QuotaManager, RedisQuotaStore, SqlQuotaStore

ACTION = "ai_receipt_processing"
DAY = 24 * 60 * 60


def _manager(store, clock, limit=10):
    return QuotaManager(store, limit=limit, window_seconds=DAY, clock=clock)


@pytest.mark.asyncio
async def test_eleventh_call_denied_until_window_slides(session, clock):
    quota = _manager(SqlQuotaStore(session), clock)
    first = clock()
    for _ in range(10):
        assert await quota.is_allowed(ACTION, "user-1")
        await quota.record_usage(ACTION, "user-1")
        clock.advance(60)

    assert await quota.is_allowed(ACTION, "user-1") is False
    usage = await quota.current_usage(ACTION, "user-1")
    assert usage.count == 10
    assert usage.oldest == first

    clock.now = first + DAY + 1
    assert await quota.is_allowed(ACTION, "user-1") is True


@pytest.mark.asyncio
async def test_usage_is_per_identifier_and_action(session, clock):
    quota = _manager(SqlQuotaStore(session), clock, limit=1)
    await quota.record_usage(ACTION, "user-1")
    assert await quota.is_allowed(ACTION, "user-1") is False
    assert await quota.is_allowed(ACTION, "user-2") is True
    assert await quota.is_allowed("other_action", "user-1") is True


@pytest.mark.asyncio
async def test_status_reports_reset_from_oldest_record(session, clock):
    quota = _manager(SqlQuotaStore(session), clock, limit=3)
    start = clock()
    await quota.record_usage(ACTION, "u")
    clock.advance(3600)
    await quota.record_usage(ACTION, "u")

    status = await quota.status(ACTION, "u")
    assert (status.limit, status.used, status.remaining) == (3, 2, 1)
    assert status.reset_at == start + DAY
    assert status.reset_in == DAY - 3600


@pytest.mark.asyncio
async def test_status_without_records_resets_a_full_window_ahead(session, clock):
    status = await _manager(SqlQuotaStore(session), clock).status(ACTION, "fresh")
    assert status.used == 0
    assert status.remaining == 10
    assert status.reset_at == clock() + DAY
    assert status.reset_in == DAY


@pytest.mark.asyncio
async def test_enforce_raises_with_hours_estimate(session, clock):
    quota = _manager(SqlQuotaStore(session), clock, limit=2)
    await quota.record_usage(ACTION, "u")
    await quota.record_usage(ACTION, "u")
    clock.advance(DAY - 90 * 60)  # 1.5 hours left

    with pytest.raises(QuotaExceededError) as exc:
        await quota.enforce(ACTION, "u")
    assert exc.value.used == 2
    assert exc.value.limit == 2
    assert "(2/2 used)" in exc.value.message
    assert "approximately 2 hours" in exc.value.message


class FakePipeline:
    def __init__(self, redis):
        self.redis = redis
        self.ops = []

    def zadd(self, key, mapping):
        self.ops.append(("zadd", key, mapping))

    def zremrangebyscore(self, key, lo, hi):
        self.ops.append(("zrem", key, hi))

    def expire(self, key, seconds):
        self.ops.append(("expire", key, seconds))

    async def execute(self):
        for op in self.ops:
            if op[0] == "zadd":
                self.redis.sets.setdefault(op[1], {}).update(op[2])
            elif op[0] == "zrem":
                zset = self.redis.sets.get(op[1], {})
                for member in [m for m, score in zset.items() if score <= op[2]]:
                    del zset[member]
            else:
                self.redis.expiries[op[1]] = op[2]
        return [True] * len(self.ops)


class FakeRedis:
    def __init__(self):
        self.sets = {}
        self.expiries = {}

    def pipeline(self):
        return FakePipeline(self)

    async def zrangebyscore(self, key, lo, hi, withscores=False):
        assert lo.startswith("(") and hi == "+inf"
        floor = float(lo[1:])
        rows = sorted(self.sets.get(key, {}).items(), key=lambda kv: kv[1])
        return [(m, s) for m, s in rows if s > floor]


@pytest.mark.asyncio
async def test_redis_store_sliding_window(clock):
    redis = FakeRedis()
    quota = _manager(RedisQuotaStore(redis, DAY), clock, limit=2)
    await quota.record_usage(ACTION, "u")
    clock.advance(10)
    await quota.record_usage(ACTION, "u")

    key = RedisQuotaStore.key(ACTION, "u")
    assert len(redis.sets[key]) == 2
    assert redis.expiries[key] == DAY
    assert await quota.is_allowed(ACTION, "u") is False

    clock.advance(DAY)
    assert await quota.is_allowed(ACTION, "u") is True
    await quota.record_usage(ACTION, "u")
    # The append trimmed both expired members.
    assert len(redis.sets[key]) == 1
