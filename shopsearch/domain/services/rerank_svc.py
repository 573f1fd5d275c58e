# shopsearch/domain/services/rerank_svc.py

from __future__ import annotations
from functools import lru_cache
from typing import List, Optional, Protocol, Sequence
import logging
import re

from shopsearch.domain.models.product import Product, ScoredResult
from shopsearch.domain.models.tuning import DEFAULT_TUNING, RankingTuning

logger = logging.getLogger(__name__)


class ProductLookup(Protocol):
    def get(self, product_id: str) -> Optional[Product]: ...


@lru_cache(maxsize=1024)
def _word_re(term: str) -> re.Pattern:
    return re.compile(rf"\b{re.escape(term)}\b")


def _has_term(text: str, terms: Sequence[str]) -> bool:
    return any(_word_re(term).search(text) for term in terms)


class RelevanceReRanker:
    """
    Heuristic affinity layer applied on top of whatever base score a candidate
    arrives with (vector similarity, keyword score, external score).

    The adjustment for a product depends only on (product, query), and the new
    score is always base_score + adjustment, so re-ranking is idempotent.
    """

    def __init__(self, tuning: RankingTuning = DEFAULT_TUNING):
        self.tuning = tuning
        self._intent_patterns = {
            name: re.compile(rule.pattern, re.IGNORECASE) for name, rule in tuning.intents.items()
        }

    # ---------- Signals ----------
    def detect_intents(self, query: str) -> List[str]:
        q = query.lower()
        return [name for name, pattern in self._intent_patterns.items() if pattern.search(q)]

    def brand_relationship(self, query: str, product_brand: str) -> float:
        t = self.tuning
        q = query.lower()
        brand = product_brand.lower()
        bonus = 0.0
        for mentioned, rel in t.brand_relations.items():
            if not _word_re(mentioned).search(q):
                continue
            if brand == mentioned:
                bonus += t.same_brand_bonus
            elif brand in rel.competitors:
                bonus += t.competitor_brand_bonus
            elif brand in rel.complementary:
                bonus += t.complementary_brand_bonus
        return bonus

    def relevance(self, product: Product, query: str, intents: Optional[List[str]] = None) -> float:
        """Score adjustment for one product, independent of its base score."""
        t = self.tuning
        q = query.lower().strip()
        if intents is None:
            intents = self.detect_intents(q)

        name = product.name.lower()
        brand = product.brand.lower()
        category = product.category.lower()
        score = 0.0

        for intent in intents:
            rule = t.intents[intent]
            if _has_term(name, rule.name_terms):
                score += t.intent_name_boost
            if brand and brand in rule.brands:
                score += t.intent_brand_boost
            if _has_term(category, rule.category_terms):
                score += t.intent_category_boost

            for conflict in rule.conflicts:
                other = t.intents.get(conflict)
                if other is None:
                    continue
                if _has_term(category, other.category_terms) or _has_term(name, other.name_terms):
                    score -= t.conflict_penalty
                    if brand and brand in other.brands:
                        score -= t.conflict_brand_penalty

        # Literal matches must not be buried when no affinity rule fired
        if not intents and q and q in name:
            score += t.exact_name_bonus

        score += self.brand_relationship(q, brand)
        return score

    # ---------- Re-rank ----------
    def rerank(self, candidates: Sequence[ScoredResult], query: str, catalog: ProductLookup) -> List[ScoredResult]:
        intents = self.detect_intents(query)
        logger.debug("rerank query=%r intents=%s candidates=%s", query, intents, len(candidates))

        rescored: List[ScoredResult] = []
        for c in candidates:
            base = c.base_score if c.base_score is not None else c.score
            product = catalog.get(c.product_id)
            adjustment = self.relevance(product, query, intents) if product else 0.0
            rescored.append(c.model_copy(update={"score": base + adjustment, "base_score": base}))

        return sorted(rescored, key=lambda r: r.score, reverse=True)
