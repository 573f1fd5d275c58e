# shopsearch/core/lifespan.py
from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI

from shopsearch.core.config import get_settings
from shopsearch.db import mongo, redis as r
from shopsearch.domain.services.search_orchestrator import build_orchestrator

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    app.state.engine = None

    # --- Startup ---
    # Mongo holds the catalog and user collaborators; without it there is no engine
    if settings.MONGO_URI:
        await mongo.connect()
    else:
        logger.warning("No MONGO_URI provided, search engine disabled")

    # Redis optional (trending cache)
    await r.connect()

    db = mongo.get_db()
    if db is not None:
        engine = build_orchestrator(db, r.get_redis(), settings)
        app.state.engine = engine
        if settings.index_build_on_startup:
            try:
                await engine.refresh()
            except Exception as e:
                # Queries fall back to live catalog fetches until a rebuild succeeds
                logger.error("Initial index build failed: %s", e)

    # Application runs
    yield

    # --- Shutdown ---
    await r.disconnect()
    await mongo.disconnect()
