import numpy as np

from shopsearch.domain.services.embedding_svc import (
    EMBEDDING_DIM,
    HashVectorizer,
    build_embeddings,
    rolling_hash,
)
from tests.fakes import make_product


class TestRollingHash:
    def test_matches_32bit_string_hash(self):
        assert rolling_hash("a") == 97
        assert rolling_hash("ab") == 97 * 31 + 98
        assert rolling_hash("hello") == 99162322

    def test_wraps_to_signed_int(self):
        assert rolling_hash("polygenelubricants") == -2147483648

    def test_empty_token(self):
        assert rolling_hash("") == 0


class TestHashVectorizer:
    def test_build_is_deterministic(self, catalog_products):
        v = HashVectorizer()
        for p in catalog_products:
            assert np.array_equal(v.build(p), v.build(p))

    def test_layout(self):
        p = make_product("x", name="Red Lamp", category="home", brand="Ikea", price=50,
                         rating=4.0, popularity=30, num_reviews=20, stock=5, discount_percentage=10)
        vec = HashVectorizer().build(p)

        assert vec.shape == (EMBEDDING_DIM,)
        assert vec[0] == abs(rolling_hash("red")) / 1_000_000
        assert vec[1] == abs(rolling_hash("lamp")) / 1_000_000
        assert vec[50] == 50 / 10_000
        assert vec[51] == 4.0 / 5
        assert vec[52] == 30 / 100
        assert vec[53] == 20 / 100
        assert vec[54] == 5 / 100
        assert vec[55] == len("home") / 50
        assert vec[56] == len("ikea") / 50
        assert vec[57] == 10 / 100
        assert not vec[58:].any()

    def test_only_first_50_tokens_are_encoded(self):
        p = make_product("x", name=" ".join(f"w{i}" for i in range(80)))
        vec = HashVectorizer().build(p)
        assert vec[49] == abs(rolling_hash("w49")) / 1_000_000
        # slot 50 holds price, not token 50
        assert vec[50] == 0.0

    def test_never_negative(self, catalog_products):
        v = HashVectorizer()
        assert all((v.build(p) >= 0).all() for p in catalog_products)

    def test_query_uses_token_slots_only(self):
        vec = HashVectorizer().build_query("iPhone case")
        assert vec[0] == abs(rolling_hash("iphone")) / 1_000_000
        assert not vec[2:].any()


def test_build_embeddings_stacks_in_catalog_order(catalog_products):
    v = HashVectorizer()
    mat = build_embeddings(v, catalog_products)
    assert mat.shape == (len(catalog_products), EMBEDDING_DIM)
    assert np.array_equal(mat[2], v.build(catalog_products[2]))
    assert build_embeddings(v, []).shape == (0, EMBEDDING_DIM)
