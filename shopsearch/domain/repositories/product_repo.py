# shopsearch/domain/repositories/product_repo.py

from __future__ import annotations
from typing import List, Optional, Sequence
from datetime import datetime, timezone
import logging

from motor.motor_asyncio import AsyncIOMotorDatabase
from pydantic import ValidationError
from pymongo import UpdateOne
from pymongo.errors import PyMongoError

from shopsearch.domain.errors import UpstreamFailure
from shopsearch.domain.models.product import Product

logger = logging.getLogger(__name__)

# Embeddings are large and never part of the domain model
_PRODUCT_PROJECTION = {"_id": 0, "embedding": 0, "embedding_updated_at": 0}


def _to_product(doc: dict) -> Optional[Product]:
    try:
        return Product.model_validate(doc)
    except ValidationError as e:
        logger.warning("Skipping invalid product doc product_id=%s err=%s", doc.get("product_id"), e)
        return None


class ProductRepo:
    """
    Catalog collaborator backed by the 'products' collection (keyed by product_id).
    Also persists index embeddings under `embedding` for the Atlas vector index.
    """

    def __init__(self, db: AsyncIOMotorDatabase, collection_name: str = "products", batch_size: int = 500):
        self.col = db[collection_name]
        self.batch_size = batch_size

    async def fetch_catalog(self) -> List[Product]:
        """Full snapshot in natural collection order; invalid documents are skipped."""
        try:
            docs = await self.col.find({}, _PRODUCT_PROJECTION).to_list(length=None)
        except PyMongoError as e:
            raise UpstreamFailure(f"fetch_catalog failed: {e}") from e
        products = [p for p in (_to_product(d) for d in docs) if p is not None]
        logger.info("fetch_catalog docs=%s valid=%s", len(docs), len(products))
        return products

    async def fetch_product(self, product_id: str) -> Optional[Product]:
        try:
            doc = await self.col.find_one({"product_id": product_id}, _PRODUCT_PROJECTION)
        except PyMongoError as e:
            raise UpstreamFailure(f"fetch_product failed: {e}") from e
        return _to_product(doc) if doc else None

    # ----- Embedding persistence --------------------------------------------

    async def set_embeddings(self, product_ids: Sequence[str], vectors: Sequence[Sequence[float]]) -> int:
        """
        Write one vector per product in batched bulk updates. Returns the number
        of modified documents.
        """
        now = datetime.now(timezone.utc)
        modified = 0
        ops: List[UpdateOne] = []
        for product_id, vector in zip(product_ids, vectors):
            ops.append(UpdateOne(
                {"product_id": product_id},
                {"$set": {"embedding": list(vector), "embedding_updated_at": now}},
                upsert=False,
            ))
            if len(ops) >= self.batch_size:
                modified += await self._flush(ops)
                ops = []
        if ops:
            modified += await self._flush(ops)
        return modified

    async def _flush(self, ops: List[UpdateOne]) -> int:
        try:
            res = await self.col.bulk_write(ops, ordered=False)
        except PyMongoError as e:
            logger.error("set_embeddings bulk_write failed: %s", e)
            raise UpstreamFailure(f"set_embeddings failed: {e}") from e
        return res.modified_count or 0
