from datetime import datetime
from typing import List, Optional

from pydantic import AliasChoices, BaseModel, Field


class HistoryEntry(BaseModel):
    product_id: str
    timestamp: Optional[datetime] = None
    model_config = {"frozen": True}


class UserHistory(BaseModel):
    """Browsing and purchase history, most recent first."""
    browsing: List[HistoryEntry] = []
    purchases: List[HistoryEntry] = []
    model_config = {"frozen": True}


class PriceRange(BaseModel):
    min: float = Field(default=0.0, ge=0)
    max: float = Field(default=10_000.0, ge=0)
    model_config = {"frozen": True}

    def contains(self, price: float) -> bool:
        return self.min <= price <= self.max


class RecommendationWeights(BaseModel):
    price: float = Field(default=0.3, ge=0)
    brand: float = Field(default=0.2, ge=0)
    category: float = Field(default=0.3, ge=0)
    popularity: float = Field(default=0.2, ge=0)
    model_config = {"frozen": True}


class UserPreferences(BaseModel):
    categories: List[str] = []
    brands: List[str] = []
    price_range: PriceRange = Field(
        default=PriceRange(), validation_alias=AliasChoices("price_range", "priceRange")
    )
    recommendation_weights: RecommendationWeights = Field(
        default=RecommendationWeights(),
        validation_alias=AliasChoices("recommendation_weights", "recommendationWeights"),
    )
    model_config = {"frozen": True}


class UserInterestProfile(BaseModel):
    """Derived per request from history; never persisted or cached."""
    categories: List[str] = Field(default_factory=list, max_length=5)
    brands: List[str] = Field(default_factory=list, max_length=5)
    tags: List[str] = Field(default_factory=list, max_length=10)
    model_config = {"frozen": True}
