from __future__ import annotations
from typing import Dict, Iterable, Optional, Tuple

from shopsearch.domain.models.product import Product


class CatalogSnapshot:
    """
    Read-only view of the catalog at one point in time. Catalog order is
    preserved and is the tie-break order for every scorer.
    """

    __slots__ = ("products", "_by_id")

    def __init__(self, products: Iterable[Product]):
        by_id: Dict[str, Product] = {}
        for p in products:
            # First occurrence wins so that ids stay 1:1 with positions
            by_id.setdefault(p.product_id, p)
        self.products: Tuple[Product, ...] = tuple(by_id.values())
        self._by_id = by_id

    def get(self, product_id: str) -> Optional[Product]:
        return self._by_id.get(product_id)

    def __contains__(self, product_id: str) -> bool:
        return product_id in self._by_id

    def __len__(self) -> int:
        return len(self.products)


EMPTY_CATALOG = CatalogSnapshot(())
