import time
from typing import Iterable, List, Optional
import logging

from shopsearch.core.config import Settings, get_settings
from shopsearch.domain.models.product import Product, ScoredResult
from shopsearch.domain.services.constants import SOURCE_TRENDING, TRENDING_LIMIT
from shopsearch.utils.cache import cache_get, cache_set

logger = logging.getLogger(__name__)


def trending(products: Iterable[Product], limit: int = TRENDING_LIMIT) -> List[ScoredResult]:
    """
    Terminal fallback: popularity desc, then rating desc, then review count desc.
    Ties beyond that keep catalog order.
    """
    ranked = sorted(products, key=lambda p: (-p.popularity, -p.rating, -p.num_reviews))
    return [
        ScoredResult(product_id=p.product_id, score=float(p.popularity), source=SOURCE_TRENDING)
        for p in ranked[:limit]
    ]


def _cache_key(settings: Settings, limit: int, version: int) -> str:
    return f"{settings.trending_cache_prefix}:v{version}:{limit}"


async def get_trending_cached(
    products: Iterable[Product],
    redis,
    *,
    limit: int = TRENDING_LIMIT,
    version: int = 0,
    settings: Optional[Settings] = None,
) -> List[ScoredResult]:
    """
    Trending list with an optional Redis layer. The key carries the index
    version, so a catalog refresh never serves a stale list. Cache trouble is
    logged and ignored.
    """
    start_time = time.perf_counter()
    settings = settings or get_settings()
    cache_key = _cache_key(settings, limit, version)

    if redis is not None:
        try:
            cached = await cache_get(redis, cache_key)
        except Exception as e:
            logger.warning("trending redis.get error key=%s err=%s", cache_key, e)
            cached = None
        if cached:
            try:
                items = [ScoredResult.model_validate(x) for x in cached]
                logger.info("trending cache_hit key=%s items=%s", cache_key, len(items))
                return items
            except Exception as e:
                logger.warning("trending cache decode error key=%s err=%s", cache_key, e)
        logger.info("trending cache_miss key=%s", cache_key)

    items = trending(products, limit)

    if redis is not None:
        try:
            await cache_set(redis, cache_key, [i.model_dump() for i in items], ex=settings.trending_cache_ttl)
            logger.debug("trending cache_set key=%s ttl=%ds", cache_key, settings.trending_cache_ttl)
        except Exception as e:
            logger.warning("trending redis.set error key=%s err=%s", cache_key, e)

    logger.info("trending done items=%s total_time=%.3fs", len(items), time.perf_counter() - start_time)
    return items
