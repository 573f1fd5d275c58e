# shopsearch/domain/services/embedding_svc.py

from __future__ import annotations
from typing import Protocol
import logging

import numpy as np

from shopsearch.domain.models.product import Product

logger = logging.getLogger(__name__)

EMBEDDING_DIM = 100
TOKEN_SLOTS = 50
HASH_SCALE = 1_000_000

# Slot -> (attribute, divisor) for the numeric/categorical block
PRICE_SLOT = 50
RATING_SLOT = 51
POPULARITY_SLOT = 52
REVIEWS_SLOT = 53
STOCK_SLOT = 54
CATEGORY_SLOT = 55
BRAND_SLOT = 56
DISCOUNT_SLOT = 57


class Vectorizer(Protocol):
    """Anything that turns products and queries into same-length vectors."""

    dim: int

    def build(self, product: Product) -> np.ndarray: ...

    def build_query(self, query: str) -> np.ndarray: ...


def rolling_hash(token: str) -> int:
    """
    32-bit rolling polynomial hash (h = h*31 + unit) over UTF-16 code units,
    wrapped to a signed int. Stable across processes, unlike hash().
    """
    h = 0
    data = token.encode("utf-16-le")
    for i in range(0, len(data), 2):
        unit = data[i] | (data[i + 1] << 8)
        h = (h * 31 + unit) & 0xFFFFFFFF
    return h - 0x100000000 if h >= 0x80000000 else h


def product_text(product: Product) -> str:
    return " ".join([
        product.name,
        product.description,
        " ".join(product.tags),
        " ".join(product.features),
    ])


class HashVectorizer:
    """
    Deterministic pseudo-embedding: token identity bucketed into the first
    TOKEN_SLOTS slots, scaled numeric attributes in slots 50-57, rest zero.
    Not a semantic model; swap in another Vectorizer for that.
    """

    dim = EMBEDDING_DIM

    def _encode_tokens(self, text: str, vec: np.ndarray) -> None:
        for i, token in enumerate(text.lower().split()[:TOKEN_SLOTS]):
            vec[i] = abs(rolling_hash(token)) / HASH_SCALE

    def build(self, product: Product) -> np.ndarray:
        vec = np.zeros(self.dim, dtype=np.float64)
        self._encode_tokens(product_text(product), vec)

        vec[PRICE_SLOT] = product.price / 10_000
        vec[RATING_SLOT] = product.rating / 5
        vec[POPULARITY_SLOT] = product.popularity / 100
        vec[REVIEWS_SLOT] = product.num_reviews / 100
        vec[STOCK_SLOT] = product.stock / 100
        vec[CATEGORY_SLOT] = len(product.category) / 50
        vec[BRAND_SLOT] = len(product.brand) / 50
        vec[DISCOUNT_SLOT] = product.discount_percentage / 100

        return np.maximum(vec, 0.0)

    def build_query(self, query: str) -> np.ndarray:
        vec = np.zeros(self.dim, dtype=np.float64)
        self._encode_tokens(query, vec)
        return np.maximum(vec, 0.0)


def build_embeddings(vectorizer: Vectorizer, products) -> np.ndarray:
    """Stack one embedding per product, in catalog order."""
    if not products:
        return np.zeros((0, vectorizer.dim), dtype=np.float64)
    mat = np.stack([vectorizer.build(p) for p in products])
    logger.debug("Built %s embeddings dim=%s", mat.shape[0], mat.shape[1])
    return mat
