# shopsearch/domain/services/search_orchestrator.py
"""
Entry points for every query type: search, related, recommend, similar and
trending. Each one walks its fallback chain and always answers with a ranked
list; the only exceptions that escape are InvalidInput (search) and a catalog
failure on the trending-terminal paths.
"""

from __future__ import annotations
import asyncio
import logging
import time
from typing import Dict, List, Optional, Tuple

from shopsearch.core.config import Settings, get_settings
from shopsearch.domain.errors import InvalidInput
from shopsearch.domain.models.catalog import EMPTY_CATALOG, CatalogSnapshot
from shopsearch.domain.models.product import Product, RankedResult, ScoredResult, SearchFilters
from shopsearch.domain.models.tuning import DEFAULT_TUNING, RankingTuning
from shopsearch.domain.repositories.interfaces import CatalogStore, ExternalVectorSearch, UserStore
from shopsearch.domain.repositories.product_repo import ProductRepo
from shopsearch.domain.repositories.product_search_repo import ProductSearchRepo
from shopsearch.domain.repositories.user_repo import UserRepo
from shopsearch.domain.services.constants import (
    METHOD_HYBRID,
    METHOD_LOCAL,
    METHOD_NONE,
    METHOD_PERSONALIZED,
    METHOD_PROXIMITY,
    METHOD_SIMILAR,
    METHOD_TRENDING,
    MIN_QUERY_LENGTH,
    RECOMMEND_LIMIT,
    RELATED_LIMIT,
    SIMILAR_SCAN_WINDOW,
    SEARCH_LIMIT,
    SIMILAR_LIMIT,
    SOURCE_EXTERNAL,
    SOURCE_PERSONALIZED,
    SOURCE_RELATED,
    TRENDING_LIMIT,
)
from shopsearch.domain.services.keyword_svc import KeywordMatcher
from shopsearch.domain.services.personalization_svc import PersonalizationScorer, apply_preference_boost
from shopsearch.domain.services.rerank_svc import RelevanceReRanker
from shopsearch.domain.services.retrieval import rerank_or_sort, retrieve_candidates
from shopsearch.domain.services.similar_products_svc import SimilarItemScorer
from shopsearch.domain.services.similarity_index import IndexState, SimilarityIndex
from shopsearch.domain.services.trending_svc import get_trending_cached, trending
from shopsearch.utils.timeouts import bounded

logger = logging.getLogger(__name__)


def merge_weighted(
    external: List[ScoredResult],
    local: List[ScoredResult],
    external_weight: float,
    local_weight: float,
) -> List[ScoredResult]:
    """
    Weight each side, dedupe by product id keeping the higher weighted score,
    and sort descending. Ties keep first-seen order (external, then local).
    """
    merged: Dict[str, ScoredResult] = {}
    for items, weight in ((external, external_weight), (local, local_weight)):
        for r in items:
            weighted = r.model_copy(update={"score": r.score * weight})
            current = merged.get(r.product_id)
            if current is None or weighted.score > current.score:
                merged[r.product_id] = weighted
    return sorted(merged.values(), key=lambda r: r.score, reverse=True)


class SearchOrchestrator:
    def __init__(
        self,
        catalog_store: CatalogStore,
        user_store: UserStore,
        external: Optional[ExternalVectorSearch] = None,
        *,
        settings: Optional[Settings] = None,
        tuning: RankingTuning = DEFAULT_TUNING,
        index: Optional[SimilarityIndex] = None,
        redis=None,
        embedding_sink=None,
    ):
        self.settings = settings or get_settings()
        self.tuning = tuning
        self.catalog_store = catalog_store
        self.external = external
        self.redis = redis
        self.embedding_sink = embedding_sink

        self.keyword = KeywordMatcher(tuning)
        self.index = index or SimilarityIndex(keyword=self.keyword)
        self.reranker = RelevanceReRanker(tuning)
        self.similar_scorer = SimilarItemScorer(tuning)
        self.personalization = PersonalizationScorer(
            user_store, lookup_timeout_s=self.settings.user_timeout_s
        )
        self._rebuild_lock = asyncio.Lock()

    # ---------- Index lifecycle ----------
    async def refresh(self, *, persist_embeddings: Optional[bool] = None) -> IndexState:
        """
        Fetch the catalog and publish a new index state. Rebuilds are serialized;
        queries keep reading the previous state until the swap.
        """
        persist = self.settings.persist_embeddings if persist_embeddings is None else persist_embeddings
        async with self._rebuild_lock:
            t0 = time.perf_counter()
            products = await bounded(
                self.catalog_store.fetch_catalog(),
                self.settings.index_rebuild_timeout_s,
                operation="fetch_catalog",
            )
            state = await asyncio.to_thread(self.index.rebuild, products)

            if persist and self.embedding_sink is not None and len(state.catalog):
                try:
                    ids = [p.product_id for p in state.catalog.products]
                    written = await self.embedding_sink.set_embeddings(ids, state.matrix.tolist())
                    logger.info("Persisted %s embeddings version=%s", written, state.version)
                except Exception as e:
                    logger.warning("Embedding persistence failed version=%s err=%s", state.version, e)

            logger.info(
                "Index refresh done version=%s products=%s total_time=%.3fs",
                state.version, len(state.catalog), time.perf_counter() - t0,
            )
            return state

    async def _snapshot(
        self, deadline: Optional[float] = None, *, required: bool = False
    ) -> Tuple[Optional[IndexState], CatalogSnapshot]:
        """
        The index state read once for this query, with its catalog. Without a
        built index the state is None and the catalog is a live fetch bounded by
        the catalog budget.
        """
        state = self.index.state
        if state is not None and len(state.catalog):
            return state, state.catalog
        return None, await self._live_catalog(deadline, required=required)

    async def _catalog(self, deadline: Optional[float] = None, *, required: bool = False) -> CatalogSnapshot:
        _, catalog = await self._snapshot(deadline, required=required)
        return catalog

    async def _live_catalog(self, deadline: Optional[float], *, required: bool) -> CatalogSnapshot:
        try:
            products = await bounded(
                self.catalog_store.fetch_catalog(),
                self.settings.catalog_timeout_s,
                operation="fetch_catalog",
                deadline=deadline,
            )
            return CatalogSnapshot(products)
        except Exception as e:
            if required:
                logger.error("Catalog unavailable, nothing left to fall back to: %s", e)
                raise
            logger.warning("Catalog unavailable, continuing with an empty snapshot: %s", e)
            return EMPTY_CATALOG

    async def _resolve_product(
        self, product_id: str, catalog: CatalogSnapshot, deadline: Optional[float]
    ) -> Optional[Product]:
        product = catalog.get(product_id)
        if product is not None:
            return product
        try:
            return await bounded(
                self.catalog_store.fetch_product(product_id),
                self.settings.catalog_timeout_s,
                operation="fetch_product",
                deadline=deadline,
            )
        except Exception as e:
            logger.warning("Product lookup failed product_id=%s err=%s", product_id, e)
            return None

    # ---------- Search ----------
    async def _external_candidates(
        self, query: str, filters: Optional[SearchFilters], limit: int, deadline: Optional[float]
    ) -> List[ScoredResult]:
        try:
            raw = await bounded(
                self.external.external_vector_search(query, filters, limit),
                self.settings.external_search_timeout_s,
                operation="external_vector_search",
                deadline=deadline,
            )
            return [r.model_copy(update={"source": SOURCE_EXTERNAL}) for r in raw]
        except Exception as e:
            logger.warning("External vector search failed, local results only: %s", e)
            return []

    async def search(
        self,
        query: str,
        filters: Optional[SearchFilters] = None,
        limit: int = SEARCH_LIMIT,
        *,
        user_id: Optional[str] = None,
        deadline: Optional[float] = None,
    ) -> RankedResult:
        """
        Local index (keyword fallback) merged with the optional external vector
        search, re-ranked, then boosted by `user_id`'s stated preferences when
        they can be loaded in time.
        """
        q = (query or "").strip()
        if len(q) < MIN_QUERY_LENGTH:
            raise InvalidInput()

        t0 = time.perf_counter()
        external_task = None
        if self.external is not None:
            external_task = asyncio.create_task(self._external_candidates(q, filters, limit, deadline))
        prefs_task = asyncio.create_task(self.personalization.preferences(user_id, deadline=deadline))

        try:
            state, catalog = await self._snapshot(deadline)
            predicate = filters.matches if filters is not None and not filters.is_empty() else None

            local = retrieve_candidates(self.index, self.keyword, q, catalog, predicate, state=state)
            local = rerank_or_sort(self.reranker, local, q, catalog)

            external: List[ScoredResult] = []
            if external_task is not None:
                external = await external_task
                if external:
                    external = rerank_or_sort(self.reranker, external, q, catalog)
            prefs = await prefs_task
        finally:
            for task in (external_task, prefs_task):
                if task is not None and not task.done():
                    task.cancel()

        items = merge_weighted(external, local, self.tuning.external_weight, self.tuning.local_weight)
        if prefs is not None:
            items = apply_preference_boost(items, catalog, prefs, self.tuning)
        items = items[:limit]
        method = METHOD_HYBRID if external else METHOD_LOCAL
        logger.info(
            "search done query=%r method=%s local=%s external=%s boosted=%s items=%s total_time=%.3fs",
            q, method, len(local), len(external), prefs is not None, len(items), time.perf_counter() - t0,
        )
        return RankedResult(items=items, count=len(items), method=method, query=q, user_id=user_id)

    # ---------- Related ----------
    async def related(
        self,
        product_id: str,
        category: Optional[str] = None,
        brand: Optional[str] = None,
        limit: int = RELATED_LIMIT,
        *,
        deadline: Optional[float] = None,
    ) -> RankedResult:
        t0 = time.perf_counter()
        catalog = await self._catalog(deadline)
        source = await self._resolve_product(product_id, catalog, deadline)
        if source is None:
            logger.info("related: product_id=%s not found", product_id)
            return RankedResult(items=[], count=0, method=METHOD_NONE, source_product_id=product_id)

        method = METHOD_SIMILAR
        try:
            ranked = await bounded(
                asyncio.to_thread(
                    self.similar_scorer.similar, source, catalog.products, None, SIMILAR_SCAN_WINDOW
                ),
                self.settings.related_timeout_s,
                operation="related",
                deadline=deadline,
            )
        except Exception as e:
            logger.warning("related: similar-item scorer failed product_id=%s err=%s", product_id, e)
            ranked = []

        if not ranked:
            method = METHOD_PROXIMITY
            ranked = self.similar_scorer.proximity(source, catalog.products)

        ranked = [r.model_copy(update={"source": SOURCE_RELATED}) for r in ranked]

        narrowing = SearchFilters(category=category, brand=brand)
        if not narrowing.is_empty():
            filtered = [
                r for r in ranked
                if (p := catalog.get(r.product_id)) is not None and narrowing.matches(p)
            ]
            if filtered:
                ranked = filtered
            else:
                logger.debug("related: filter category=%s brand=%s left nothing, unfiltered", category, brand)

        items = ranked[:limit]
        logger.info(
            "related done product_id=%s method=%s items=%s total_time=%.3fs",
            product_id, method, len(items), time.perf_counter() - t0,
        )
        return RankedResult(items=items, count=len(items), method=method, source_product_id=product_id)

    # ---------- Recommend ----------
    async def recommend(
        self, user_id: Optional[str], limit: int = RECOMMEND_LIMIT, *, deadline: Optional[float] = None
    ) -> RankedResult:
        catalog = await self._catalog(deadline, required=True)
        items = await self.personalization.recommend(user_id, catalog, limit, deadline=deadline)
        personalized = bool(items) and items[0].source == SOURCE_PERSONALIZED
        method = METHOD_PERSONALIZED if personalized else METHOD_TRENDING
        return RankedResult(items=items, count=len(items), method=method, user_id=user_id)

    # ---------- Similar ----------
    async def similar(
        self, product_id: str, limit: int = SIMILAR_LIMIT, *, deadline: Optional[float] = None
    ) -> RankedResult:
        catalog = await self._catalog(deadline)
        source = await self._resolve_product(product_id, catalog, deadline)
        if source is None:
            logger.info("similar: product_id=%s not found", product_id)
            return RankedResult(items=[], count=0, method=METHOD_NONE, source_product_id=product_id)

        try:
            items = self.similar_scorer.similar(source, catalog.products, limit)
            method = METHOD_SIMILAR
        except Exception as e:
            logger.error("similar: scorer failed product_id=%s err=%s, using trending", product_id, e)
            items = trending(catalog.products, limit)
            method = METHOD_TRENDING
        return RankedResult(items=items, count=len(items), method=method, source_product_id=product_id)

    # ---------- Trending ----------
    async def trending(self, limit: int = TRENDING_LIMIT, *, deadline: Optional[float] = None) -> RankedResult:
        state, catalog = await self._snapshot(deadline, required=True)
        # Only index snapshots are versioned, so live fetches bypass the cache
        redis = self.redis if state is not None else None
        version = state.version if state is not None else 0
        items = await get_trending_cached(
            catalog.products, redis, limit=limit, version=version, settings=self.settings
        )
        return RankedResult(items=items, count=len(items), method=METHOD_TRENDING)


def build_orchestrator(db=None, redis=None, settings: Optional[Settings] = None) -> SearchOrchestrator:
    """Wire the Mongo-backed collaborators into an orchestrator."""
    settings = settings or get_settings()
    products = ProductRepo(db)
    external = ProductSearchRepo(db, settings=settings) if settings.atlas_vector_search_enabled else None
    return SearchOrchestrator(
        products,
        UserRepo(db),
        external,
        settings=settings,
        redis=redis,
        embedding_sink=products,
    )
