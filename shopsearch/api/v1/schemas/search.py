# api/v1/schemas/search.py
from datetime import datetime
from pydantic import AliasChoices, BaseModel, Field
from typing import Optional

from shopsearch.domain.models.product import SearchFilters
from shopsearch.domain.services.constants import SEARCH_LIMIT


class SearchRequest(BaseModel):
    query: str = ""
    category: Optional[str] = None
    brand: Optional[str] = None
    min_price: Optional[float] = Field(default=None, ge=0)
    max_price: Optional[float] = Field(default=None, ge=0)
    limit: int = Field(default=SEARCH_LIMIT, ge=1, le=100)
    user_id: Optional[str] = Field(default=None, validation_alias=AliasChoices("user_id", "userId"))

    def filters(self) -> SearchFilters:
        return SearchFilters(
            category=self.category,
            brand=self.brand,
            min_price=self.min_price,
            max_price=self.max_price,
        )


class IndexRebuildOut(BaseModel):
    version: int
    products: int
    built_at: datetime
    processing_time_ms: float
