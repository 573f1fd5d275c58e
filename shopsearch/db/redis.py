# shopsearch/db/redis.py
import logging
import redis.asyncio as redis
from shopsearch.core.config import get_settings

logger = logging.getLogger(__name__)

redis_client: redis.Redis | None = None


async def connect():
    """
    Connect Redis if REDIS_URL is set. Redis only backs the trending cache, so
    an unreachable server disables caching instead of blocking startup.
    """
    global redis_client
    settings = get_settings()
    if not settings.REDIS_URL:
        logger.warning("No REDIS_URL configured, trending cache disabled")
        redis_client = None
        return

    try:
        redis_client = redis.from_url(settings.REDIS_URL, decode_responses=True)
        await redis_client.ping()
        logger.info("Redis connected")
    except Exception as e:
        logger.warning("Failed to connect to Redis, trending cache disabled: %s", e)
        redis_client = None


async def disconnect():
    global redis_client
    if redis_client:
        await redis_client.aclose()
        redis_client = None
        logger.info("Redis disconnected")


def get_redis() -> redis.Redis | None:
    """None when Redis is not configured or unavailable; callers must handle it."""
    return redis_client
