from fastapi import APIRouter, Depends, HTTPException, Query
from shopsearch.api.deps import engine_dep
from shopsearch.domain.errors import SearchEngineError
from shopsearch.domain.services.constants import RECOMMEND_LIMIT
from shopsearch.domain.services.search_orchestrator import SearchOrchestrator

import logging
import time
logger = logging.getLogger(__name__)

router = APIRouter(tags=["recommendations"])


@router.get("/users/{user_id}/recommendations")
async def user_recommendations(
    user_id: str,
    limit: int = Query(RECOMMEND_LIMIT, ge=1, le=50),
    engine: SearchOrchestrator = Depends(engine_dep),
):
    """
    Personalized picks from the user's browsing/purchase history.
    Unknown or history-less users get the trending list (method="trending").
    """
    logger.info("Request: recommendations user_id=%s limit=%s", user_id, limit)
    start_time = time.perf_counter()

    try:
        res = await engine.recommend(user_id, limit)
    except SearchEngineError as e:
        logger.error("recommendations failed user_id=%s: %s", user_id, e)
        raise HTTPException(status_code=503, detail="Catalog temporarily unavailable")

    logger.info(
        "Response: recommendations user_id=%s method=%s count=%s elapsed_time=%.4fs",
        user_id, res.method, res.count, time.perf_counter() - start_time,
    )
    return res.model_dump()
