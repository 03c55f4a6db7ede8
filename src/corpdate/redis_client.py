"""Redis connection pool.

Redis carries the per-user pub/sub channels that notifications fan out on,
the rate-limit counters and the console OTP store.
"""

import redis.asyncio as redis

_pool: redis.Redis | None = None


def user_channel(user_id: int) -> str:
    """Pub/sub channel carrying events for a single user."""
    return f"ws:user:{user_id}"


async def init_redis(url: str) -> None:
    """Initialize the Redis connection pool."""
    global _pool  # noqa: PLW0603
    _pool = redis.from_url(  # type: ignore[no-untyped-call]
        url,
        encoding="utf-8",
        decode_responses=True,
        max_connections=50,
    )


async def close_redis() -> None:
    """Close the Redis connection pool."""
    global _pool  # noqa: PLW0603
    if _pool:
        await _pool.aclose()
        _pool = None


def get_redis() -> redis.Redis:
    """Get the Redis client. Raises RuntimeError before init_redis()."""
    if _pool is None:
        msg = "Redis not initialized. Call init_redis() first."
        raise RuntimeError(msg)
    return _pool


def get_redis_or_none() -> redis.Redis | None:
    """Get the Redis client, or None when it is not configured."""
    return _pool
