"""
Shared fixtures: a small catalog and in-memory collaborators standing in for
the Mongo repositories.
"""
from typing import Dict, List

import pytest

from shopsearch.core.config import Settings
from shopsearch.domain.models.product import Product
from shopsearch.domain.models.user import HistoryEntry, UserHistory
from tests.fakes import FakeCatalogStore, FakeUserStore, make_product


@pytest.fixture
def catalog_products() -> List[Product]:
    return [
        make_product("p1", name="iPhone 14", description="Apple smartphone with A15 chip",
                     category="phone", brand="Apple", price=999, rating=4.7, popularity=95,
                     num_reviews=1200, stock=30, tags=["smartphone", "ios"]),
        make_product("p2", name="LG 55-inch TV", description="4K television with webOS",
                     category="tv", brand="LG", price=699, rating=4.4, popularity=80,
                     num_reviews=640, stock=12, tags=["television", "4k"]),
        make_product("p3", name="Galaxy S23", description="Samsung flagship smartphone",
                     category="phone", brand="Samsung", price=899, rating=4.6, popularity=90,
                     num_reviews=980, stock=25, tags=["smartphone", "android"]),
        make_product("p4", name="Phone Case", description="Slim protective case",
                     category="accessories", brand="Spigen", price=19, rating=4.2, popularity=40,
                     num_reviews=300, stock=200, tags=["case", "iphone"]),
        make_product("p5", name="Running Shoes", description="Lightweight road running shoes",
                     category="shoes", brand="Nike", price=120, rating=4.5, popularity=70,
                     num_reviews=410, stock=60, tags=["running", "sport"]),
        make_product("p6", name="Trail Shoes", description="Grippy trail running shoes",
                     category="shoes", brand="Adidas", price=110, rating=4.3, popularity=60,
                     num_reviews=220, stock=40, tags=["running", "trail"]),
        make_product("p7", name="Cotton T-Shirt", description="Breathable everyday tee",
                     category="clothing", brand="Nike", price=25, rating=4.0, popularity=50,
                     num_reviews=150, stock=300, tags=["cotton"]),
        make_product("p8", name="Pixel 8", description="Google phone with Tensor G3",
                     category="phone", brand="Google", price=699, rating=4.5, popularity=85,
                     num_reviews=700, stock=18, tags=["smartphone", "android"]),
    ]


@pytest.fixture
def settings() -> Settings:
    return Settings(
        catalog_timeout_s=1.0,
        user_timeout_s=0.2,
        related_timeout_s=1.0,
        external_search_timeout_s=0.2,
        index_rebuild_timeout_s=1.0,
    )


@pytest.fixture
def user_histories() -> Dict[str, UserHistory]:
    return {
        "u-runner": UserHistory(browsing=[HistoryEntry(product_id="p5")]),
        "u-empty": UserHistory(),
    }


@pytest.fixture
def catalog_store(catalog_products):
    return FakeCatalogStore(catalog_products)


@pytest.fixture
def user_store(user_histories):
    return FakeUserStore(user_histories)
