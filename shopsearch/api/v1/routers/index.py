# shopsearch/api/v1/routers/index.py

from fastapi import APIRouter, Depends, HTTPException, Query
from typing import Optional
import time
import logging

from shopsearch.api.deps import engine_dep
from shopsearch.api.v1.schemas.search import IndexRebuildOut
from shopsearch.domain.errors import SearchEngineError
from shopsearch.domain.services.search_orchestrator import SearchOrchestrator

logger = logging.getLogger(__name__)

router = APIRouter(tags=["index"])


@router.post("/index/rebuild", response_model=IndexRebuildOut, summary="Rebuild the in-memory similarity index")
async def rebuild_index(
    persist_embeddings: Optional[bool] = Query(None, description="Write vectors back to Mongo (defaults to settings)"),
    engine: SearchOrchestrator = Depends(engine_dep),
):
    """
    Fetches the whole catalog and swaps in a freshly built index. Concurrent
    rebuild requests queue up; searches keep using the previous index meanwhile.
    """
    start = time.perf_counter()
    logger.info("[index] rebuild start persist_embeddings=%s", persist_embeddings)

    try:
        state = await engine.refresh(persist_embeddings=persist_embeddings)
    except SearchEngineError as e:
        logger.error("[index] rebuild failed: %s", e)
        raise HTTPException(status_code=503, detail="Catalog temporarily unavailable")

    elapsed_ms = (time.perf_counter() - start) * 1000.0
    logger.info("[index] rebuild done version=%s products=%s time_ms=%.1f", state.version, len(state.catalog), elapsed_ms)
    return IndexRebuildOut(
        version=state.version,
        products=len(state.catalog),
        built_at=state.built_at,
        processing_time_ms=elapsed_ms,
    )
