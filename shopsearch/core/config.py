from functools import lru_cache
from typing import Literal, Optional
import os
from pydantic_settings import BaseSettings, SettingsConfigDict

EnvName = Literal["development", "production", "test"]

def _env_file_for(app_env: EnvName) -> str:
    return ".env.production" if app_env == "production" else ".env.development"

class Settings(BaseSettings):

    # Core
    APP_ENV: EnvName = "development"
    APP_NAME: str = "ShopSearch"
    DEBUG: bool = False
    GIT_SHA: str = "unknown"
    ALLOWED_ORIGINS: str = ""  # CSV

    # Mongo (catalog + user history collaborators)
    MONGO_URI: Optional[str] = None
    MONGO_DB: str = "shop"

    # Redis (optional, trending cache only)
    REDIS_URL: Optional[str] = None

    # Collaborator budgets, in seconds
    catalog_timeout_s: float = 3.0
    user_timeout_s: float = 3.0
    related_timeout_s: float = 5.0
    external_search_timeout_s: float = 5.0
    index_rebuild_timeout_s: float = 60.0       # full catalog fetch for a rebuild

    # Cache config
    trending_cache_ttl: int = 5 * 60            # 5 minutes
    trending_cache_prefix: str = "trending"

    # Index
    index_build_on_startup: bool = True
    atlas_vector_search_enabled: bool = False   # external index is opt-in
    atlas_vector_index: str = "vector_index"
    atlas_vector_path: str = "embedding"
    persist_embeddings: bool = False            # write rebuilt vectors back for the Atlas index

    # API
    api_prefix: str = "/api"

    # pydantic-settings config will be set dynamically in the factory below
    model_config = SettingsConfigDict(env_file=None, case_sensitive=True, extra="ignore")

@lru_cache
def get_settings() -> Settings:
    """
    Factory that chooses the right .env file based on APP_ENV.
    Cache makes it cheap to inject via FastAPI dependencies.
    """
    app_env: EnvName = os.getenv("APP_ENV", "development")  # earliest switch
    env_file = _env_file_for(app_env)
    return Settings(
                _env_file=env_file,  # load .env.development or .env.production
                _env_file_encoding="utf-8"
    )
