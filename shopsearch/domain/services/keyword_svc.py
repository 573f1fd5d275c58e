import logging
from typing import Callable, Iterable, List, Optional

from shopsearch.domain.models.product import Product, ScoredResult
from shopsearch.domain.models.tuning import DEFAULT_TUNING, RankingTuning
from shopsearch.domain.services.constants import SOURCE_KEYWORD

logger = logging.getLogger(__name__)


class KeywordMatcher:
    """
    Field-weighted substring scorer. Purely additive; penalties belong to the
    re-ranker.
    """

    def __init__(self, tuning: RankingTuning = DEFAULT_TUNING):
        self.tuning = tuning

    def score(self, product: Product, query: str) -> float:
        q = query.lower()
        t = self.tuning
        score = 0.0
        if q in product.name.lower():
            score += t.keyword_name
        if q in product.description.lower():
            score += t.keyword_description
        if q in product.category.lower():
            score += t.keyword_category
        if q in product.brand.lower():
            score += t.keyword_brand
        score += t.keyword_tag * sum(1 for tag in product.tags if q in tag.lower())
        return score

    def search(
        self,
        products: Iterable[Product],
        query: str,
        limit: Optional[int] = None,
        predicate: Optional[Callable[[Product], bool]] = None,
    ) -> List[ScoredResult]:
        hits: List[ScoredResult] = []
        for product in products:
            if predicate and not predicate(product):
                continue
            score = self.score(product, query)
            if score > 0:
                hits.append(ScoredResult(product_id=product.product_id, score=score, source=SOURCE_KEYWORD))

        # sorted() is stable: equal scores keep catalog order
        hits = sorted(hits, key=lambda r: r.score, reverse=True)
        logger.debug("keyword query=%r matched=%s", query, len(hits))
        return hits if limit is None else hits[:limit]
