# shopsearch/domain/repositories/interfaces.py
"""
Collaborator contracts the engine is written against. The Mongo repositories
in this package implement them; tests use in-memory fakes.
"""

from __future__ import annotations
from typing import List, Optional, Protocol

from shopsearch.domain.models.product import Product, ScoredResult, SearchFilters
from shopsearch.domain.models.user import UserHistory, UserPreferences


class CatalogStore(Protocol):
    async def fetch_catalog(self) -> List[Product]: ...

    async def fetch_product(self, product_id: str) -> Optional[Product]: ...


class UserStore(Protocol):
    async def fetch_user_history(self, user_id: str) -> Optional[UserHistory]: ...

    async def fetch_user_preferences(self, user_id: str) -> Optional[UserPreferences]: ...


class ExternalVectorSearch(Protocol):
    async def external_vector_search(
        self, query: str, filters: Optional[SearchFilters], limit: int
    ) -> List[ScoredResult]:
        """An empty list means "defer to local search", not an error."""
        ...
