from fastapi import FastAPI
from shopsearch.core.config import get_settings
from shopsearch.core.lifespan import lifespan
from shopsearch.api.v1.routers.health import router as health_router
from shopsearch.api.v1.routers.search import router as search_router
from shopsearch.api.v1.routers.similar import router as similar_router
from shopsearch.api.v1.routers.recommendations import router as recommendations_router
from shopsearch.api.v1.routers.trending import router as trending_router
from shopsearch.api.v1.routers.index import router as index_router
from shopsearch.core.logging import configure_logging

from fastapi.middleware.cors import CORSMiddleware
import logging

settings = get_settings()
configure_logging(level=logging.DEBUG if settings.DEBUG else logging.INFO)

app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)

# ------- CORS -------
# ALLOWED_ORIGINS is a CSV, e.g. "https://shop.example.com,https://www.shop.example.com"
allowed_origins = [o.strip() for o in settings.ALLOWED_ORIGINS.split(",") if o.strip()]

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=False,                        # keep False to simplify preflight
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
    max_age=86400,
)

# ------- Routes -------
app.include_router(health_router)
app.include_router(search_router, prefix=settings.api_prefix)
app.include_router(similar_router, prefix=settings.api_prefix)           # similar + related
app.include_router(recommendations_router, prefix=settings.api_prefix)
app.include_router(trending_router, prefix=settings.api_prefix)
app.include_router(index_router, prefix=settings.api_prefix)
