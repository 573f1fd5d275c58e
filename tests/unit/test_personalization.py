import pytest

from shopsearch.domain.errors import UpstreamFailure
from shopsearch.domain.models.catalog import CatalogSnapshot
from shopsearch.domain.models.product import ScoredResult
from shopsearch.domain.models.user import (
    HistoryEntry,
    PriceRange,
    RecommendationWeights,
    UserHistory,
    UserInterestProfile,
    UserPreferences,
)
from shopsearch.domain.services.personalization_svc import (
    PersonalizationScorer,
    apply_preference_boost,
    build_interest_profile,
    preference_boost,
    score_candidate,
)
from shopsearch.domain.services.trending_svc import trending
from tests.fakes import FakeUserStore, make_product


@pytest.fixture
def catalog(catalog_products):
    return CatalogSnapshot(catalog_products)


class TestInterestProfile:
    def test_browsing_then_purchases_deduplicated(self, catalog):
        history = UserHistory(
            browsing=[HistoryEntry(product_id="p5"), HistoryEntry(product_id="p6")],
            purchases=[HistoryEntry(product_id="p1"), HistoryEntry(product_id="p5")],
        )
        profile = build_interest_profile(history, catalog)
        assert profile.categories == ["shoes", "phone"]
        assert profile.brands == ["Nike", "Adidas", "Apple"]
        assert profile.tags == ["running", "sport", "trail", "smartphone", "ios"]

    def test_caps(self):
        products = [
            make_product(f"x{i}", category=f"c{i}", brand=f"b{i}", tags=[f"t{i}a", f"t{i}b"])
            for i in range(12)
        ]
        history = UserHistory(browsing=[HistoryEntry(product_id=p.product_id) for p in products])
        profile = build_interest_profile(history, CatalogSnapshot(products))
        assert profile.categories == ["c0", "c1", "c2", "c3", "c4"]
        assert len(profile.brands) == 5
        assert len(profile.tags) == 10
        assert profile.tags[-1] == "t4b"

    def test_unknown_products_and_empty_values_skipped(self, catalog):
        blank = make_product("blank")
        history = UserHistory(browsing=[HistoryEntry(product_id="gone"), HistoryEntry(product_id="blank")])
        profile = build_interest_profile(history, CatalogSnapshot([*catalog.products, blank]))
        assert profile == UserInterestProfile()


class TestScoreCandidate:
    def test_weighted_sum(self, catalog):
        profile = UserInterestProfile(categories=["shoes"], brands=["Nike"])
        score = score_candidate(catalog.get("p5"), profile, UserPreferences())
        # category 0.3 + brand 0.2 + price in range 0.3 + popularity 0.2 * 0.70
        assert score == pytest.approx(0.94)

    def test_price_outside_preferred_range(self, catalog):
        profile = UserInterestProfile(categories=["shoes"])
        prefs = UserPreferences(price_range=PriceRange(min=0, max=50))
        assert score_candidate(catalog.get("p5"), profile, prefs) == pytest.approx(0.3 + 0.14)

    def test_clamped_to_one(self, catalog):
        profile = UserInterestProfile(categories=["shoes"], brands=["Nike"])
        prefs = UserPreferences(recommendation_weights=RecommendationWeights(category=1, brand=1))
        assert score_candidate(catalog.get("p5"), profile, prefs) == 1.0


class TestRecommend:
    @pytest.mark.asyncio
    async def test_personalized_ranking(self, catalog, user_store):
        items = await PersonalizationScorer(user_store).recommend("u-runner", catalog)
        assert [r.product_id for r in items] == ["p5", "p6", "p7"]
        assert [r.score for r in items] == pytest.approx([0.94, 0.72, 0.6])
        assert all(0.0 <= r.score <= 1.0 for r in items)
        assert all(r.source == "personalized" for r in items)

    @pytest.mark.asyncio
    async def test_empty_history_equals_trending(self, catalog, user_store):
        items = await PersonalizationScorer(user_store).recommend("u-empty", catalog, limit=4)
        assert items == trending(catalog.products, 4)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("user_id", [None, "", "   ", "current", "nobody"])
    async def test_anonymous_or_unknown_users_get_trending(self, catalog, user_store, user_id):
        items = await PersonalizationScorer(user_store).recommend(user_id, catalog)
        assert items == trending(catalog.products, 10)

    @pytest.mark.asyncio
    async def test_lookup_timeout_falls_back(self, catalog, user_histories):
        slow = FakeUserStore(user_histories, delay=1.0)
        items = await PersonalizationScorer(slow, lookup_timeout_s=0.05).recommend("u-runner", catalog)
        assert items == trending(catalog.products, 10)

    @pytest.mark.asyncio
    async def test_lookup_error_falls_back(self, catalog):
        broken = FakeUserStore(fail=UpstreamFailure("boom"))
        items = await PersonalizationScorer(broken).recommend("u-runner", catalog)
        assert items == trending(catalog.products, 10)

    @pytest.mark.asyncio
    async def test_missing_preferences_use_defaults(self, catalog, user_histories):
        store = FakeUserStore(user_histories, preferences={})
        items = await PersonalizationScorer(store).recommend("u-runner", catalog, limit=1)
        assert items[0].score == pytest.approx(0.94)


class TestPreferenceBoost:
    def test_category_brand_and_price(self, catalog):
        prefs = UserPreferences(categories=["shoes"], brands=["Nike"], price_range=PriceRange(min=100, max=200))
        assert preference_boost(catalog.get("p5"), prefs) == pytest.approx(0.9)
        assert preference_boost(catalog.get("p6"), prefs) == pytest.approx(0.6)
        assert preference_boost(catalog.get("p7"), prefs) == pytest.approx(0.3)
        assert preference_boost(catalog.get("p1"), prefs) == 0.0

    def test_boost_reorders_and_skips_unknown_ids(self, catalog):
        prefs = UserPreferences(brands=["Adidas"], price_range=PriceRange(min=0, max=0))
        results = [
            ScoredResult(product_id="p5", score=1.0),
            ScoredResult(product_id="ghost", score=0.9),
            ScoredResult(product_id="p6", score=0.8),
        ]
        boosted = apply_preference_boost(results, catalog, prefs)

        assert [r.product_id for r in boosted] == ["p6", "p5", "ghost"]
        assert boosted[0].score == pytest.approx(1.1)
        assert boosted[2] is results[1]


class TestSearchPreferencesLookup:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("user_id", [None, "", "current", "undefined"])
    async def test_anonymous_ids_skip_lookup(self, user_id):
        store = FakeUserStore(preferences={"current": UserPreferences(brands=["Nike"])})
        assert await PersonalizationScorer(store).preferences(user_id) is None

    @pytest.mark.asyncio
    async def test_known_user(self):
        prefs = UserPreferences(brands=["Nike"])
        store = FakeUserStore(preferences={"u1": prefs})
        assert await PersonalizationScorer(store).preferences("u1") == prefs

    @pytest.mark.asyncio
    async def test_timeout_and_error_mean_no_preferences(self):
        slow = FakeUserStore(preferences={"u1": UserPreferences()}, delay=1.0)
        broken = FakeUserStore(fail=UpstreamFailure("boom"))
        assert await PersonalizationScorer(slow, lookup_timeout_s=0.05).preferences("u1") is None
        assert await PersonalizationScorer(broken).preferences("u1") is None
