import pytest

from shopsearch.domain.services.similar_products_svc import SimilarItemScorer
from tests.fakes import make_product


@pytest.fixture
def scorer():
    return SimilarItemScorer()


def _by_id(products, product_id):
    return next(p for p in products if p.product_id == product_id)


class TestSimilar:
    def test_scores_shared_attributes(self, scorer, catalog_products):
        results = scorer.similar(_by_id(catalog_products, "p5"), catalog_products)
        assert [r.product_id for r in results] == ["p6", "p7"]
        # p6: category 0.4 + one shared tag 0.1 + price within 20% 0.2
        assert results[0].score == pytest.approx(0.7)
        # p7: brand only
        assert results[1].score == pytest.approx(0.3)

    def test_excludes_source_and_respects_limit(self, scorer, catalog_products):
        source = _by_id(catalog_products, "p1")
        results = scorer.similar(source, catalog_products, limit=1)
        assert [r.product_id for r in results] == ["p3"]
        assert all(r.product_id != "p1" for r in scorer.similar(source, catalog_products))

    def test_missing_source_is_empty(self, scorer, catalog_products):
        assert scorer.similar(None, catalog_products) == []

    def test_scores_are_clamped(self, scorer):
        tags = [f"t{i}" for i in range(12)]
        a = make_product("a", category="c", brand="b", price=10, tags=tags)
        b = make_product("b", category="c", brand="b", price=10, tags=tags)
        (r,) = scorer.similar(a, [a, b])
        assert r.score == 1.0

    def test_scan_window_bounds_candidates(self, scorer):
        source = make_product("s", category="c")
        others = [make_product(f"o{i}", category="c", rating=i % 5) for i in range(30)]
        results = scorer.similar(source, [source, *others], limit=None, window=10)
        assert len(results) == 10


class TestProximity:
    def test_weights_and_order(self, scorer, catalog_products):
        results = scorer.proximity(_by_id(catalog_products, "p5"), catalog_products)
        ids = [r.product_id for r in results]
        assert ids[:2] == ["p6", "p7"]
        assert results[0].score == 8  # category 5 + price 2 + rating 1
        assert results[1].score == 4  # brand 3 + rating 1
        # rating-only matches keep catalog order
        assert ids[2:] == ["p1", "p2", "p3", "p4", "p8"]
        assert all(r.source == "related" for r in results)

    def test_zero_scores_dropped(self, scorer):
        source = make_product("s", category="a", brand="x", price=100, rating=5)
        far = make_product("f", category="b", brand="y", price=900, rating=1)
        assert scorer.proximity(source, [source, far]) == []
