import logging
from typing import Optional

from redis.asyncio import Redis
from redis.exceptions import RedisError

from .config import settings

logger = logging.getLogger(__name__)

_redis: Optional[Redis] = None


async def get_redis() -> Redis:
    """Shared connection pool for the resume store, created on first use."""
    global _redis
    if _redis is None:
        logger.info("Connecting resume store to %s", settings.REDIS_URL)
        _redis = Redis.from_url(settings.REDIS_URL, decode_responses=True)
    return _redis


async def redis_is_healthy() -> bool:
    try:
        client = await get_redis()
        return bool(await client.ping())
    except RedisError as exc:
        logger.warning("Redis health check failed: %s", exc)
        return False


async def close_redis() -> None:
    global _redis
    if _redis is not None:
        await _redis.aclose()
        _redis = None
        logger.info("Closed resume store connection")
