# shopsearch/api/v1/routers/similar.py
from fastapi import APIRouter, Depends, Query
from typing import Optional
import time
import logging

from shopsearch.api.deps import engine_dep
from shopsearch.domain.services.constants import RELATED_LIMIT, SIMILAR_LIMIT
from shopsearch.domain.services.search_orchestrator import SearchOrchestrator

logger = logging.getLogger(__name__)

router = APIRouter(tags=["similar"])


@router.get("/products/{product_id}/similar")
async def similar_products(
    product_id: str,
    limit: int = Query(SIMILAR_LIMIT, ge=1, le=50),
    engine: SearchOrchestrator = Depends(engine_dep),
):
    """
    Substitutable products: same category, brand or tags, close price.
    Unknown product_id answers an empty list.
    """
    logger.info("Request: similar_products product_id=%s, limit=%s", product_id, limit)
    start_time = time.perf_counter()

    res = await engine.similar(product_id, limit)

    logger.info(
        "Response: similar_products product_id=%s, count=%s, elapsed_time=%.4fs",
        product_id, res.count, time.perf_counter() - start_time,
    )
    return res.model_dump()


@router.get("/products/{product_id}/related")
async def related_products(
    product_id: str,
    category: Optional[str] = Query(None, description="Prefer related products in this category"),
    brand: Optional[str] = Query(None, description="Prefer related products of this brand"),
    limit: int = Query(RELATED_LIMIT, ge=1, le=50),
    engine: SearchOrchestrator = Depends(engine_dep),
):
    logger.info(
        "Request: related_products product_id=%s, category=%s, brand=%s, limit=%s",
        product_id, category, brand, limit,
    )
    start_time = time.perf_counter()

    res = await engine.related(product_id, category, brand, limit)

    logger.info(
        "Response: related_products product_id=%s, method=%s, count=%s, elapsed_time=%.4fs",
        product_id, res.method, res.count, time.perf_counter() - start_time,
    )
    return res.model_dump()
