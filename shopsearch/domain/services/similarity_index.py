# shopsearch/domain/services/similarity_index.py
"""
In-memory cosine-similarity index over product embeddings.

The index state (catalog snapshot + embedding matrix) is immutable once built.
`rebuild()` prepares a complete new state and publishes it with one attribute
assignment, so a concurrent `search()` sees either the old or the new state,
never a mix of both.
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Iterable, List, Optional
import logging
import time

import numpy as np

from shopsearch.domain.models.catalog import CatalogSnapshot
from shopsearch.domain.models.product import Product, ScoredResult
from shopsearch.domain.services.constants import SOURCE_VECTOR
from shopsearch.domain.services.embedding_svc import HashVectorizer, Vectorizer, build_embeddings
from shopsearch.domain.services.keyword_svc import KeywordMatcher

logger = logging.getLogger(__name__)


def cosine_similarity(a, b) -> float:
    """Cosine similarity clamped to [0, 1]; 0 when either vector has no magnitude."""
    a = np.asarray(a, dtype=np.float64)
    b = np.asarray(b, dtype=np.float64)
    if a.shape != b.shape:
        return 0.0
    norm_a = float(np.linalg.norm(a))
    norm_b = float(np.linalg.norm(b))
    if norm_a == 0.0 or norm_b == 0.0:
        return 0.0
    return min(1.0, max(0.0, float(np.dot(a, b)) / (norm_a * norm_b)))


@dataclass(frozen=True)
class IndexState:
    catalog: CatalogSnapshot
    matrix: np.ndarray          # (n_products, dim), row i <-> catalog.products[i]
    norms: np.ndarray           # (n_products,)
    version: int
    built_at: datetime


class SimilarityIndex:
    def __init__(self, vectorizer: Optional[Vectorizer] = None, keyword: Optional[KeywordMatcher] = None):
        self.vectorizer = vectorizer or HashVectorizer()
        self.keyword = keyword or KeywordMatcher()
        self._state: Optional[IndexState] = None

    # ---------- State ----------
    @property
    def state(self) -> Optional[IndexState]:
        return self._state

    @property
    def version(self) -> int:
        state = self._state
        return state.version if state else 0

    def rebuild(self, products: Iterable[Product]) -> IndexState:
        t0 = time.perf_counter()
        catalog = products if isinstance(products, CatalogSnapshot) else CatalogSnapshot(products)
        matrix = build_embeddings(self.vectorizer, catalog.products)
        norms = np.linalg.norm(matrix, axis=1) if len(catalog) else np.zeros(0)

        state = IndexState(
            catalog=catalog,
            matrix=matrix,
            norms=norms,
            version=self.version + 1,
            built_at=datetime.now(timezone.utc),
        )
        self._state = state  # atomic swap
        logger.info(
            "Similarity index rebuilt version=%s products=%s time=%.3fs",
            state.version, len(catalog), time.perf_counter() - t0,
        )
        return state

    def embedding(self, product_id: str) -> Optional[np.ndarray]:
        state = self._state
        if state is None:
            return None
        for i, p in enumerate(state.catalog.products):
            if p.product_id == product_id:
                return state.matrix[i].copy()
        return None

    # ---------- Search ----------
    def search(
        self,
        query: str,
        limit: Optional[int] = None,
        *,
        catalog: Optional[CatalogSnapshot] = None,
        predicate: Optional[Callable[[Product], bool]] = None,
        state: Optional[IndexState] = None,
    ) -> List[ScoredResult]:
        """
        Rank every indexed product by cosine similarity to the query.
        Falls back to the keyword matcher over `catalog` while the index is empty.

        Pass `state` to score against a snapshot the caller already holds, so the
        results line up with the catalog it uses for re-ranking.
        """
        if state is None:
            state = self._state  # read once; a concurrent rebuild cannot tear it
        if state is None or len(state.catalog) == 0:
            logger.warning("Similarity index not built, using keyword fallback for query=%r", query)
            products = catalog.products if catalog is not None else ()
            return self.keyword.search(products, query, limit, predicate)

        qvec = self.vectorizer.build_query(query)
        q_norm = float(np.linalg.norm(qvec))
        if q_norm == 0.0:
            sims = np.zeros(len(state.catalog))
        else:
            denom = state.norms * q_norm
            sims = np.divide(state.matrix @ qvec, denom, out=np.zeros(len(state.catalog)), where=denom > 0)
            sims = np.clip(sims, 0.0, 1.0)

        # Stable sort keeps catalog order among equal similarities
        order = np.argsort(-sims, kind="stable")
        results: List[ScoredResult] = []
        for i in order:
            product = state.catalog.products[int(i)]
            if predicate and not predicate(product):
                continue
            results.append(ScoredResult(product_id=product.product_id, score=float(sims[i]), source=SOURCE_VECTOR))
            if limit is not None and len(results) >= limit:
                break
        return results
