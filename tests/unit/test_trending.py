import pytest

from shopsearch.core.config import Settings
from shopsearch.domain.services.trending_svc import get_trending_cached, trending
from tests.fakes import FakeRedis, make_product


class TestTrending:
    def test_popularity_order(self, catalog_products):
        items = trending(catalog_products, 3)
        assert [r.product_id for r in items] == ["p1", "p3", "p8"]
        assert items[0].score == 95.0
        assert all(r.source == "trending" for r in items)

    def test_tie_breaks(self):
        products = [
            make_product("a", popularity=50, rating=4.0, num_reviews=10),
            make_product("b", popularity=50, rating=4.5, num_reviews=1),
            make_product("c", popularity=50, rating=4.0, num_reviews=99),
            make_product("d", popularity=50, rating=4.0, num_reviews=10),
        ]
        assert [r.product_id for r in trending(products)] == ["b", "c", "a", "d"]

    def test_empty_catalog(self):
        assert trending([], 5) == []


class TestTrendingCache:
    @pytest.mark.asyncio
    async def test_miss_then_hit(self, catalog_products):
        redis = FakeRedis()
        settings = Settings(trending_cache_ttl=60)

        first = await get_trending_cached(catalog_products, redis, limit=5, version=3, settings=settings)
        assert "trending:v3:5" in redis.store

        # a hit does not look at the products at all
        second = await get_trending_cached([], redis, limit=5, version=3, settings=settings)
        assert second == first

    @pytest.mark.asyncio
    async def test_new_version_misses(self, catalog_products):
        redis = FakeRedis()
        settings = Settings()
        await get_trending_cached(catalog_products, redis, limit=5, version=1, settings=settings)
        items = await get_trending_cached(catalog_products[:2], redis, limit=5, version=2, settings=settings)
        assert [r.product_id for r in items] == ["p1", "p2"]

    @pytest.mark.asyncio
    async def test_cache_errors_are_ignored(self, catalog_products):
        items = await get_trending_cached(
            catalog_products, FakeRedis(fail=True), limit=2, settings=Settings()
        )
        assert [r.product_id for r in items] == ["p1", "p3"]

    @pytest.mark.asyncio
    async def test_without_redis(self, catalog_products):
        items = await get_trending_cached(catalog_products, None, limit=2, settings=Settings())
        assert len(items) == 2
