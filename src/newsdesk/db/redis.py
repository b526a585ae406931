"""Redis connection — used only by the rate limiter.

The pool is created in the app lifespan when NEWSDESK_REDIS_URL is set.
Without it, get_redis() returns None and rate limiting is skipped.
"""

from typing import Optional

import redis.asyncio as aioredis

from newsdesk.config import settings

# Global Redis connection pool (initialized in lifespan)
_redis: Optional[aioredis.Redis] = None


async def init_redis(url: Optional[str] = None) -> Optional[aioredis.Redis]:
    """Connect and ping. Returns None when no URL is configured."""
    global _redis
    url = url if url is not None else settings.redis_url
    if not url:
        return None
    client = aioredis.from_url(url, encoding="utf-8", decode_responses=True)
    await client.ping()
    _redis = client
    return _redis


async def close_redis() -> None:
    global _redis
    if _redis is not None:
        await _redis.aclose()
        _redis = None


def get_redis() -> Optional[aioredis.Redis]:
    return _redis
