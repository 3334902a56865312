"""Redis client: the claim rate limiter is its only user.

Claims never depend on Redis for correctness; at-most-once payout is the
conditional write in the store. Losing Redis only loses throttling.
"""

import redis.asyncio as aioredis

from config.settings import settings

_redis_pool: aioredis.Redis | None = None


async def get_redis() -> aioredis.Redis:
    """Get or create the shared connection pool."""
    global _redis_pool  # noqa: PLW0603
    if _redis_pool is None:
        _redis_pool = aioredis.from_url(
            settings.REDIS_URL,
            decode_responses=True,
        )
    return _redis_pool


async def ping_redis() -> None:
    redis = await get_redis()
    await redis.ping()


async def close_redis() -> None:
    global _redis_pool  # noqa: PLW0603
    if _redis_pool is not None:
        await _redis_pool.aclose()
        _redis_pool = None


async def incr_window(key: str, window_seconds: int) -> int:
    """Fixed-window hit counter.

    `key` must already embed the window number; INCR and EXPIRE go out in one
    MULTI so a counter can never be left without a TTL.
    """
    redis = await get_redis()
    async with redis.pipeline(transaction=True) as pipe:
        pipe.incr(key)
        pipe.expire(key, window_seconds)
        count, _ = await pipe.execute()
    return int(count)
