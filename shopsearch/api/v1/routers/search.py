# shopsearch/api/v1/routers/search.py
from fastapi import APIRouter, Depends, HTTPException
import logging
import time

from shopsearch.api.deps import engine_dep
from shopsearch.api.v1.schemas.search import SearchRequest
from shopsearch.domain.errors import InvalidInput
from shopsearch.domain.services.search_orchestrator import SearchOrchestrator

logger = logging.getLogger(__name__)

router = APIRouter(tags=["search"])


@router.post("/search")
async def search_products(body: SearchRequest, engine: SearchOrchestrator = Depends(engine_dep)):
    """
    Free-text product search. Local index (keyword fallback) merged with the
    optional Atlas vector index, then affinity re-ranked. With a `user_id` the
    user's stated category, brand and price preferences boost matching results.
    A query shorter than 2 characters is a 400 asking for more input, so clients
    can tell "no query" apart from "no results".
    """
    logger.info("Request: search query=%r limit=%s user_id=%s", body.query, body.limit, body.user_id)
    start_time = time.perf_counter()

    try:
        res = await engine.search(body.query, body.filters(), body.limit, user_id=body.user_id)
    except InvalidInput as e:
        raise HTTPException(status_code=400, detail=e.message)

    logger.info(
        "Response: search method=%s count=%s elapsed_time=%.4fs",
        res.method, res.count, time.perf_counter() - start_time,
    )
    return res.model_dump()
