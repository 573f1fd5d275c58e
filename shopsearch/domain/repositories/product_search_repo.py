# shopsearch/domain/repositories/product_search_repo.py
from __future__ import annotations
from typing import Any, Dict, List, Optional
import logging
import re

from motor.motor_asyncio import AsyncIOMotorCollection, AsyncIOMotorDatabase
from pymongo.errors import PyMongoError

from shopsearch.core.config import Settings, get_settings
from shopsearch.domain.errors import UpstreamFailure
from shopsearch.domain.models.product import ScoredResult, SearchFilters
from shopsearch.domain.services.constants import SOURCE_EXTERNAL
from shopsearch.domain.services.embedding_svc import HashVectorizer, Vectorizer

logger = logging.getLogger(__name__)


class ProductSearchRepo:
    """
    External vector search over MongoDB Atlas ($vectorSearch) on the embeddings
    persisted by the index rebuild. Disabled unless configured; an empty result
    means "defer to local search".
    """

    def __init__(
        self,
        db: AsyncIOMotorDatabase,
        collection_name: str = "products",
        *,
        settings: Optional[Settings] = None,
        vectorizer: Optional[Vectorizer] = None,
    ):
        self.col: AsyncIOMotorCollection = db[collection_name]
        self.settings = settings or get_settings()
        self.vectorizer = vectorizer or HashVectorizer()

    # ---------- Utils ----------
    @staticmethod
    def _mql_from_filters(filters: Optional[SearchFilters]) -> Optional[Dict[str, Any]]:
        """Case-insensitive equality on category/brand plus a price range, as a $match."""
        if filters is None or filters.is_empty():
            return None
        parts: List[Dict[str, Any]] = []
        if filters.category:
            parts.append({"category": {"$regex": f"^{re.escape(filters.category)}$", "$options": "i"}})
        if filters.brand:
            parts.append({"brand": {"$regex": f"^{re.escape(filters.brand)}$", "$options": "i"}})
        price: Dict[str, float] = {}
        if filters.min_price is not None:
            price["$gte"] = filters.min_price
        if filters.max_price is not None:
            price["$lte"] = filters.max_price
        if price:
            parts.append({"price": price})
        return parts[0] if len(parts) == 1 else {"$and": parts}

    # ---------- Vector search ----------
    async def external_vector_search(
        self,
        query: str,
        filters: Optional[SearchFilters],
        limit: int,
    ) -> List[ScoredResult]:
        if not self.settings.atlas_vector_search_enabled:
            return []

        query_vector = self.vectorizer.build_query(query).tolist()
        if not any(query_vector):
            return []

        mql_match = self._mql_from_filters(filters)
        pipeline: List[Dict[str, Any]] = [
            {
                "$vectorSearch": {
                    "index": self.settings.atlas_vector_index,
                    "path": self.settings.atlas_vector_path,
                    "queryVector": query_vector,
                    "numCandidates": max(200, 10 * limit),
                    # $match runs after the vector stage, so over-fetch when filtering
                    "limit": limit * 5 if mql_match else limit,
                }
            }
        ]
        if mql_match:
            pipeline.append({"$match": mql_match})
        pipeline += [
            {"$addFields": {"score": {"$meta": "vectorSearchScore"}}},
            {"$project": {"_id": 0, "product_id": 1, "score": 1}},
            {"$limit": limit},
        ]

        try:
            raw = [doc async for doc in self.col.aggregate(pipeline)]
        except PyMongoError as e:
            raise UpstreamFailure(f"external_vector_search failed: {e}") from e

        logger.info("Atlas $vectorSearch returned %s results for path=%s", len(raw), self.settings.atlas_vector_path)
        return [
            ScoredResult(product_id=str(r["product_id"]), score=float(r.get("score", 0)), source=SOURCE_EXTERNAL)
            for r in raw
            if r.get("product_id")
        ]
