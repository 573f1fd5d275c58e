"""
HTTP surface: routers wired to an orchestrator over in-memory collaborators.
"""
import pytest
from fastapi.testclient import TestClient

from shopsearch.api.deps import engine_dep
from shopsearch.domain.errors import UpstreamFailure
from shopsearch.domain.services.search_orchestrator import SearchOrchestrator
from shopsearch.main import app
from tests.fakes import FakeCatalogStore


@pytest.fixture
def engine(catalog_store, user_store, settings):
    return SearchOrchestrator(catalog_store, user_store, settings=settings)


@pytest.fixture
def client(engine):
    app.dependency_overrides[engine_dep] = lambda: engine
    yield TestClient(app)
    app.dependency_overrides.clear()


class TestSearchEndpoint:
    def test_short_query_is_400_with_soft_message(self, client):
        r = client.post("/api/search", json={"query": "a"})
        assert r.status_code == 400
        assert r.json()["detail"] == "Please enter at least 2 characters to search."

    def test_ranked_results(self, client):
        r = client.post("/api/search", json={"query": "iphone", "limit": 5})
        assert r.status_code == 200
        body = r.json()
        assert body["query"] == "iphone"
        assert body["items"][0]["product_id"] == "p1"
        assert body["count"] == len(body["items"])

    def test_filters(self, client):
        r = client.post("/api/search", json={"query": "shoes", "brand": "adidas"})
        assert [i["product_id"] for i in r.json()["items"]] == ["p6"]

    def test_invalid_limit_is_422(self, client):
        r = client.post("/api/search", json={"query": "shoes", "limit": 0})
        assert r.status_code == 422

    def test_user_id_is_accepted_in_camel_case(self, client):
        r = client.post("/api/search", json={"query": "shoes", "userId": "u-runner"})
        assert r.status_code == 200
        assert r.json()["user_id"] == "u-runner"


class TestProductEndpoints:
    def test_related_with_category_preference(self, client):
        r = client.get("/api/products/p5/related", params={"category": "clothing"})
        assert r.status_code == 200
        assert [i["product_id"] for i in r.json()["items"]] == ["p7"]

    def test_similar_unknown_product_is_empty(self, client):
        r = client.get("/api/products/nope/similar")
        assert r.status_code == 200
        assert r.json()["items"] == []

    def test_similar(self, client):
        r = client.get("/api/products/p1/similar", params={"limit": 1})
        assert [i["product_id"] for i in r.json()["items"]] == ["p3"]


class TestRecommendationsAndTrending:
    def test_user_without_history_gets_trending(self, client):
        r = client.get("/api/users/u-empty/recommendations", params={"limit": 3})
        body = r.json()
        assert body["method"] == "trending"
        assert [i["product_id"] for i in body["items"]] == ["p1", "p3", "p8"]

    def test_personalized(self, client):
        body = client.get("/api/users/u-runner/recommendations").json()
        assert body["method"] == "personalized"
        assert body["user_id"] == "u-runner"

    def test_trending(self, client):
        r = client.get("/api/trending", params={"limit": 2})
        assert [i["product_id"] for i in r.json()["items"]] == ["p1", "p3"]

    def test_catalog_outage_is_503_without_detail(self, user_store, settings):
        broken = SearchOrchestrator(FakeCatalogStore([], fail=UpstreamFailure("mongo: auth failed")),
                                    user_store, settings=settings)
        app.dependency_overrides[engine_dep] = lambda: broken
        try:
            r = TestClient(app).get("/api/trending")
        finally:
            app.dependency_overrides.clear()
        assert r.status_code == 503
        assert "mongo" not in r.text


class TestIndexAndHealth:
    def test_rebuild(self, client, engine):
        r = client.post("/api/index/rebuild")
        assert r.status_code == 200
        assert r.json()["version"] == 1
        assert r.json()["products"] == 8
        assert engine.index.state is not None

    def test_engine_unavailable_is_503(self):
        r = TestClient(app).get("/api/trending")
        assert r.status_code == 503

    def test_health_reports_index(self, client):
        body = client.get("/health").json()
        assert body["checks"]["mongodb"] == "error: not configured"
        assert body["checks"]["index"]["built"] is False
        assert body["status"] == "error"
