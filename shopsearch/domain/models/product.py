from pydantic import AliasChoices, BaseModel, Field
from typing import Optional, List


class Product(BaseModel):
    product_id: str = Field(min_length=1)
    name: str = ""
    description: str = ""
    category: str = ""
    brand: str = ""
    price: float = Field(default=0.0, ge=0)
    rating: float = Field(default=0.0, ge=0, le=5)
    num_reviews: int = Field(default=0, ge=0, validation_alias=AliasChoices("num_reviews", "numReviews"))
    popularity: float = Field(default=0.0, ge=0)
    stock: int = Field(default=0, ge=0)
    discount_percentage: float = Field(
        default=0.0, ge=0, le=100,
        validation_alias=AliasChoices("discount_percentage", "discountPercentage"),
    )
    tags: List[str] = []
    features: List[str] = []

    model_config = {"frozen": True}


class SearchFilters(BaseModel):
    category: Optional[str] = None
    brand: Optional[str] = None
    min_price: Optional[float] = Field(default=None, ge=0)
    max_price: Optional[float] = Field(default=None, ge=0)

    model_config = {"frozen": True}

    def is_empty(self) -> bool:
        return not (self.category or self.brand or self.min_price is not None or self.max_price is not None)

    def matches(self, product: Product) -> bool:
        if self.category and product.category.lower() != self.category.lower():
            return False
        if self.brand and product.brand.lower() != self.brand.lower():
            return False
        if self.min_price is not None and product.price < self.min_price:
            return False
        if self.max_price is not None and product.price > self.max_price:
            return False
        return True


class ScoredResult(BaseModel):
    """
    One ranked product. Scores from different scorers are on different scales;
    only the orchestrator's merge step makes them comparable.
    """
    product_id: str
    score: float
    base_score: Optional[float] = None   # score before re-ranking adjustments
    source: Optional[str] = None         # provenance: vector, keyword, external, similar, ...
    model_config = {"frozen": True}


class RankedResult(BaseModel):
    items: List[ScoredResult]
    count: int
    method: str
    query: Optional[str] = None
    source_product_id: Optional[str] = None
    user_id: Optional[str] = None
    model_config = {"frozen": True}
