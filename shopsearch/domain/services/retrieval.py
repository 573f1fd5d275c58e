import logging
from typing import Callable, List, Optional

from shopsearch.domain.models.catalog import CatalogSnapshot
from shopsearch.domain.models.product import Product, ScoredResult
from shopsearch.domain.services.keyword_svc import KeywordMatcher
from shopsearch.domain.services.rerank_svc import RelevanceReRanker
from shopsearch.domain.services.similarity_index import IndexState, SimilarityIndex

logger = logging.getLogger(__name__)


def retrieve_candidates(
    index: SimilarityIndex,
    keyword: KeywordMatcher,
    query: str,
    catalog: CatalogSnapshot,
    predicate: Optional[Callable[[Product], bool]] = None,
    limit: Optional[int] = None,
    state: Optional[IndexState] = None,
) -> List[ScoredResult]:
    """
    Local candidates: cosine similarity over the index snapshot `state`, falling
    back to keyword matching over `catalog` when there is no built snapshot or
    the vector phase errors or returns nothing.
    """
    items: List[ScoredResult] = []

    # ---------- Vector phase ----------
    if state is not None and len(state.catalog):
        try:
            items = index.search(query, limit, catalog=catalog, predicate=predicate, state=state)
            logger.info("Vector search returned %s results for query=%r", len(items), query)
        except Exception as e:
            logger.error("Vector search failed: %s", e)
            items = []
    else:
        logger.warning("Similarity index not built, skipping vector phase")

    # ---------- Keyword fallback ----------
    if not items:
        items = keyword.search(catalog.products, query, limit, predicate)
        logger.info("Keyword fallback returned %s results for query=%r", len(items), query)

    return items


def rerank_or_sort(
    reranker: RelevanceReRanker,
    candidates: List[ScoredResult],
    query: str,
    catalog: CatalogSnapshot,
) -> List[ScoredResult]:
    """Re-rank; if the re-ranker fails, fall back to a stable sort by base score."""
    try:
        return reranker.rerank(candidates, query, catalog)
    except Exception as e:
        logger.error("Re-ranking failed, sorting by base score: %s", e)
        return sorted(
            candidates,
            key=lambda r: r.base_score if r.base_score is not None else r.score,
            reverse=True,
        )
