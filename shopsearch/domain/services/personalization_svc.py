# shopsearch/domain/services/personalization_svc.py

from __future__ import annotations
from typing import List, Optional
import logging
import time

from shopsearch.domain.errors import NotFound
from shopsearch.domain.models.catalog import CatalogSnapshot
from shopsearch.domain.models.product import Product, ScoredResult
from shopsearch.domain.models.tuning import DEFAULT_TUNING, RankingTuning
from shopsearch.domain.models.user import UserHistory, UserInterestProfile, UserPreferences
from shopsearch.domain.repositories.interfaces import UserStore
from shopsearch.domain.services.constants import (
    MAX_PROFILE_BRANDS,
    MAX_PROFILE_CATEGORIES,
    MAX_PROFILE_TAGS,
    PERSONALIZATION_SCAN_WINDOW,
    RECOMMEND_LIMIT,
    SOURCE_PERSONALIZED,
)
from shopsearch.domain.services.trending_svc import trending
from shopsearch.utils.timeouts import bounded

logger = logging.getLogger(__name__)

# Placeholder ids the storefront sends for anonymous sessions
_ANONYMOUS_IDS = {"current", "anonymous", "null", "undefined"}


def is_anonymous(user_id: Optional[str]) -> bool:
    return not user_id or not user_id.strip() or user_id.strip().lower() in _ANONYMOUS_IDS


def _dedupe(values, cap: int) -> List[str]:
    return list(dict.fromkeys(v for v in values if v))[:cap]


def build_interest_profile(history: UserHistory, catalog: CatalogSnapshot) -> UserInterestProfile:
    """
    Collect category/brand/tag values from browsed then purchased products,
    in encounter order, deduplicated and capped.
    """
    categories: List[str] = []
    brands: List[str] = []
    tags: List[str] = []
    for entry in [*history.browsing, *history.purchases]:
        product = catalog.get(entry.product_id)
        if product is None:
            continue
        categories.append(product.category)
        brands.append(product.brand)
        tags.extend(product.tags)

    return UserInterestProfile(
        categories=_dedupe(categories, MAX_PROFILE_CATEGORIES),
        brands=_dedupe(brands, MAX_PROFILE_BRANDS),
        tags=_dedupe(tags, MAX_PROFILE_TAGS),
    )


def score_candidate(product: Product, profile: UserInterestProfile, prefs: UserPreferences) -> float:
    w = prefs.recommendation_weights
    score = 0.0
    if product.category in profile.categories:
        score += w.category
    if product.brand in profile.brands:
        score += w.brand
    if prefs.price_range.contains(product.price):
        score += w.price
    score += w.popularity * (product.popularity / 100)
    return min(max(score, 0.0), 1.0)


def preference_boost(product: Product, prefs: UserPreferences, tuning: RankingTuning = DEFAULT_TUNING) -> float:
    boost = 0.0
    if product.category in prefs.categories:
        boost += tuning.preference_category_boost
    if product.brand in prefs.brands:
        boost += tuning.preference_brand_boost
    if prefs.price_range.contains(product.price):
        boost += tuning.preference_price_boost
    return boost


def apply_preference_boost(
    results: List[ScoredResult],
    catalog: CatalogSnapshot,
    prefs: UserPreferences,
    tuning: RankingTuning = DEFAULT_TUNING,
) -> List[ScoredResult]:
    """
    Add the preference boost to each result whose product is in `catalog` and
    re-sort, stable on ties. Results outside the catalog keep their score.
    """
    boosted: List[ScoredResult] = []
    for r in results:
        product = catalog.get(r.product_id)
        bonus = preference_boost(product, prefs, tuning) if product is not None else 0.0
        boosted.append(r.model_copy(update={"score": r.score + bonus}) if bonus else r)
    return sorted(boosted, key=lambda r: r.score, reverse=True)


class PersonalizationScorer:
    def __init__(
        self,
        users: UserStore,
        *,
        lookup_timeout_s: float = 3.0,
        scan_window: int = PERSONALIZATION_SCAN_WINDOW,
    ):
        self.users = users
        self.lookup_timeout_s = lookup_timeout_s
        self.scan_window = scan_window

    async def _load_user(self, user_id: str, deadline: Optional[float]):
        history = await bounded(
            self.users.fetch_user_history(user_id),
            self.lookup_timeout_s,
            operation="fetch_user_history",
            deadline=deadline,
        )
        if history is None:
            raise NotFound("user", user_id)
        prefs = await bounded(
            self.users.fetch_user_preferences(user_id),
            self.lookup_timeout_s,
            operation="fetch_user_preferences",
            deadline=deadline,
        )
        return history, prefs or UserPreferences()

    async def preferences(self, user_id: Optional[str], *, deadline: Optional[float] = None) -> Optional[UserPreferences]:
        """Stated preferences for search boosting, or None when there is nothing to boost with."""
        if is_anonymous(user_id):
            return None
        try:
            return await bounded(
                self.users.fetch_user_preferences(user_id),
                self.lookup_timeout_s,
                operation="fetch_user_preferences",
                deadline=deadline,
            )
        except Exception as e:
            logger.warning("Preference lookup failed user_id=%s err=%s, no boost", user_id, e)
            return None

    async def recommend(
        self,
        user_id: Optional[str],
        catalog: CatalogSnapshot,
        limit: int = RECOMMEND_LIMIT,
        *,
        deadline: Optional[float] = None,
    ) -> List[ScoredResult]:
        """
        Personalized ranking for `user_id`. Every failure or missing signal
        degrades to the trending list over the same catalog; nothing is raised.
        """
        t0 = time.perf_counter()
        if is_anonymous(user_id):
            logger.info("recommend: anonymous or invalid user_id=%r, using trending", user_id)
            return trending(catalog.products, limit)

        try:
            history, prefs = await self._load_user(user_id, deadline)
        except NotFound:
            logger.info("recommend: user_id=%s not found, using trending", user_id)
            return trending(catalog.products, limit)
        except Exception as e:
            logger.warning("recommend: user lookup failed user_id=%s err=%s, using trending", user_id, e)
            return trending(catalog.products, limit)

        try:
            profile = build_interest_profile(history, catalog)
            if not profile.categories:
                logger.info("recommend: empty interest profile user_id=%s, using trending", user_id)
                return trending(catalog.products, limit)

            categories, brands, tags = set(profile.categories), set(profile.brands), set(profile.tags)
            candidates = [
                p for p in catalog.products
                if p.category in categories or p.brand in brands or tags.intersection(p.tags)
            ]
            scanned = sorted(candidates, key=lambda p: (-p.rating, -p.popularity))[: self.scan_window]

            scored = [
                ScoredResult(
                    product_id=p.product_id,
                    score=score_candidate(p, profile, prefs),
                    source=SOURCE_PERSONALIZED,
                )
                for p in scanned
            ]
            items = sorted(scored, key=lambda r: r.score, reverse=True)[:limit]
        except Exception as e:
            logger.error("recommend: scoring failed user_id=%s err=%s, using trending", user_id, e)
            return trending(catalog.products, limit)

        logger.info(
            "recommend done user_id=%s profile=%s/%s/%s candidates=%s items=%s time=%.3fs",
            user_id, len(profile.categories), len(profile.brands), len(profile.tags),
            len(candidates), len(items), time.perf_counter() - t0,
        )
        return items
