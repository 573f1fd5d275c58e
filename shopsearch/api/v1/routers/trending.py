from fastapi import APIRouter, Depends, HTTPException, Query
from shopsearch.api.deps import engine_dep
from shopsearch.domain.errors import SearchEngineError
from shopsearch.domain.services.constants import TRENDING_LIMIT
from shopsearch.domain.services.search_orchestrator import SearchOrchestrator

import logging
import time
logger = logging.getLogger(__name__)

router = APIRouter(tags=["trending"])


@router.get("/trending")
async def trending_products(
    limit: int = Query(TRENDING_LIMIT, ge=1, le=100),
    engine: SearchOrchestrator = Depends(engine_dep),
):
    """Most popular products (popularity, then rating, then review count)."""
    logger.info("Request: trending limit=%s", limit)
    start_time = time.perf_counter()

    try:
        res = await engine.trending(limit)
    except SearchEngineError as e:
        logger.error("trending failed: %s", e)
        raise HTTPException(status_code=503, detail="Catalog temporarily unavailable")

    logger.info("Response: trending count=%s elapsed_time=%.4fs", res.count, time.perf_counter() - start_time)
    return res.model_dump()
