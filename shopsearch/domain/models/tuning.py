from typing import Dict, List

from pydantic import BaseModel, Field

from shopsearch.domain.services.constants import BRAND_RELATIONSHIPS, INTENT_LEXICON


class IntentRule(BaseModel):
    pattern: str
    name_terms: List[str] = []
    category_terms: List[str] = []
    brands: List[str] = []
    conflicts: List[str] = []
    model_config = {"frozen": True}


class BrandRelation(BaseModel):
    competitors: List[str] = []
    complementary: List[str] = []
    model_config = {"frozen": True}


def _default_intents() -> Dict[str, IntentRule]:
    return {name: IntentRule(**rule) for name, rule in INTENT_LEXICON.items()}


def _default_brand_relations() -> Dict[str, BrandRelation]:
    return {brand: BrandRelation(**rel) for brand, rel in BRAND_RELATIONSHIPS.items()}


class RankingTuning(BaseModel):
    """
    Every hand-tuned magnitude used by the scorers, in one place.
    Tests pin these as golden values; change them here, not in scoring code.
    """

    # Keyword fallback (per matched field)
    keyword_name: float = 10.0
    keyword_description: float = 5.0
    keyword_category: float = 3.0
    keyword_brand: float = 3.0
    keyword_tag: float = 2.0

    # Re-ranker affinity
    intent_name_boost: float = 20.0
    intent_brand_boost: float = 15.0
    intent_category_boost: float = 10.0
    conflict_penalty: float = 25.0
    conflict_brand_penalty: float = 15.0
    exact_name_bonus: float = 15.0
    same_brand_bonus: float = 0.4
    competitor_brand_bonus: float = 0.3
    complementary_brand_bonus: float = 0.2

    # Search boost from a signed-in user's stated preferences
    preference_category_boost: float = 0.4
    preference_brand_boost: float = 0.3
    preference_price_boost: float = 0.2

    # Hybrid merge
    external_weight: float = 0.8
    local_weight: float = 0.6

    # Similar-item scorer
    similar_category: float = 0.4
    similar_brand: float = 0.3
    similar_tag: float = 0.1
    similar_price: float = 0.2
    price_tolerance: float = 0.2

    # Related-products proximity fallback
    proximity_category: float = 5.0
    proximity_brand: float = 3.0
    proximity_price: float = 2.0
    proximity_rating: float = 1.0
    rating_tolerance: float = 1.0

    intents: Dict[str, IntentRule] = Field(default_factory=_default_intents)
    brand_relations: Dict[str, BrandRelation] = Field(default_factory=_default_brand_relations)

    model_config = {"frozen": True}


DEFAULT_TUNING = RankingTuning()
