import logging
from typing import Iterable, List, Optional

from shopsearch.domain.models.product import Product, ScoredResult
from shopsearch.domain.models.tuning import DEFAULT_TUNING, RankingTuning
from shopsearch.domain.services.constants import (
    SIMILAR_LIMIT,
    SIMILAR_SCAN_WINDOW,
    SOURCE_RELATED,
    SOURCE_SIMILAR,
)

logger = logging.getLogger(__name__)


def _by_quality(products: Iterable[Product]) -> List[Product]:
    return sorted(products, key=lambda p: (-p.rating, -p.popularity))


def _price_close(source: Product, other: Product, tolerance: float) -> bool:
    if source.price <= 0 or other.price <= 0:
        return False
    return abs(other.price - source.price) / source.price < tolerance


class SimilarItemScorer:
    """Pairwise product-to-product scoring for "similar" and "related" lists."""

    def __init__(self, tuning: RankingTuning = DEFAULT_TUNING):
        self.tuning = tuning

    def score(self, source: Product, other: Product) -> float:
        t = self.tuning
        score = 0.0
        if source.category and other.category == source.category:
            score += t.similar_category
        if source.brand and other.brand == source.brand:
            score += t.similar_brand
        score += t.similar_tag * len(set(source.tags) & set(other.tags))
        if _price_close(source, other, t.price_tolerance):
            score += t.similar_price
        return min(max(score, 0.0), 1.0)

    def similar(
        self,
        source: Optional[Product],
        catalog: Iterable[Product],
        limit: Optional[int] = SIMILAR_LIMIT,
        window: int = SIMILAR_SCAN_WINDOW,
    ) -> List[ScoredResult]:
        """
        Products sharing category, brand or a tag with `source`, best rated first,
        scanned within `window`, then scored and truncated. Missing source -> [].
        """
        if source is None or not source.product_id:
            logger.info("similar: no source product, returning empty list")
            return []

        source_tags = set(source.tags)
        candidates = [
            p for p in catalog
            if p.product_id != source.product_id and (
                (source.category and p.category == source.category)
                or (source.brand and p.brand == source.brand)
                or (source_tags and source_tags.intersection(p.tags))
            )
        ]
        scanned = _by_quality(candidates)[:window]

        results = [
            ScoredResult(product_id=p.product_id, score=self.score(source, p), source=SOURCE_SIMILAR)
            for p in scanned
        ]
        results = sorted(results, key=lambda r: r.score, reverse=True)
        logger.debug("similar source=%s candidates=%s scanned=%s", source.product_id, len(candidates), len(scanned))
        return results if limit is None else results[:limit]

    def proximity(
        self,
        source: Optional[Product],
        catalog: Iterable[Product],
        limit: Optional[int] = None,
    ) -> List[ScoredResult]:
        """
        Coarse related-products fallback over the whole catalog: same category,
        same brand, close price, close rating. Zero-score products are dropped.
        """
        if source is None:
            return []
        t = self.tuning
        results: List[ScoredResult] = []
        for p in catalog:
            if p.product_id == source.product_id:
                continue
            score = 0.0
            if p.category == source.category:
                score += t.proximity_category
            if p.brand == source.brand:
                score += t.proximity_brand
            if _price_close(source, p, t.price_tolerance):
                score += t.proximity_price
            if abs(p.rating - source.rating) < t.rating_tolerance:
                score += t.proximity_rating
            if score > 0:
                results.append(ScoredResult(product_id=p.product_id, score=score, source=SOURCE_RELATED))

        results = sorted(results, key=lambda r: r.score, reverse=True)
        return results if limit is None else results[:limit]
