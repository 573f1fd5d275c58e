
# Result sizes for each entry point.
SEARCH_LIMIT = 20
RELATED_LIMIT = 8
RECOMMEND_LIMIT = 10
SIMILAR_LIMIT = 5
TRENDING_LIMIT = 10
MIN_QUERY_LENGTH = 2

# Bounded candidate windows scanned before scoring
PERSONALIZATION_SCAN_WINDOW = 20
SIMILAR_SCAN_WINDOW = 10

# UserInterestProfile caps
MAX_PROFILE_CATEGORIES = 5
MAX_PROFILE_BRANDS = 5
MAX_PROFILE_TAGS = 10

# Provenance tags carried on ScoredResult.source
SOURCE_VECTOR = "vector"
SOURCE_KEYWORD = "keyword"
SOURCE_EXTERNAL = "external"
SOURCE_PERSONALIZED = "personalized"
SOURCE_SIMILAR = "similar"
SOURCE_RELATED = "related"
SOURCE_TRENDING = "trending"

# Which stage of a fallback chain produced a RankedResult
METHOD_HYBRID = "hybrid"
METHOD_LOCAL = "local"
METHOD_PERSONALIZED = "personalized"
METHOD_SIMILAR = "similar"
METHOD_PROXIMITY = "proximity"
METHOD_TRENDING = "trending"
METHOD_NONE = "none"

# Query intent lexicon. `pattern` is tested against the lower-cased query;
# the term lists are matched on word boundaries against product fields.
INTENT_LEXICON = {
    "phone": {
        "pattern": r"\bphones?\b|smartphone|mobile|iphone|android|samsung|pixel|galaxy",
        "name_terms": ["iphone", "phone", "smartphone", "galaxy", "pixel"],
        "category_terms": ["phone", "phones", "smartphone", "smartphones", "mobile"],
        "brands": ["apple", "samsung", "google"],
        "conflicts": ["tv"],
    },
    "watch": {
        "pattern": r"watch|smartwatch|smart watch|fitness tracker|wearable|garmin|fitbit",
        "name_terms": ["watch", "smartwatch", "tracker"],
        "category_terms": ["watch", "watches", "wearable", "wearables"],
        "brands": ["garmin", "fitbit"],
        "conflicts": [],
    },
    "laptop": {
        "pattern": r"laptop|notebook|computer|macbook|dell|\bhp\b|lenovo|asus|acer|\bmsi\b",
        "name_terms": ["laptop", "notebook", "macbook", "chromebook"],
        "category_terms": ["laptop", "laptops", "computer", "computers"],
        "brands": ["dell", "hp", "lenovo", "asus", "acer", "msi"],
        "conflicts": [],
    },
    "tablet": {
        "pattern": r"tablet|ipad|kindle|fire tablet",
        "name_terms": ["tablet", "ipad", "kindle"],
        "category_terms": ["tablet", "tablets"],
        "brands": [],
        "conflicts": ["tv"],
    },
    "clothing": {
        "pattern": r"shirt|pants|dress|jeans|jacket|coat|t-shirt|polo|sweater|hoodie",
        "name_terms": ["shirt", "pants", "dress", "jeans", "jacket", "coat", "polo", "sweater", "hoodie"],
        "category_terms": ["clothing", "apparel", "fashion"],
        "brands": [],
        "conflicts": [],
    },
    "shoes": {
        "pattern": r"shoes|sneakers|boots|sandals|loafers|heels|flats|running shoes",
        "name_terms": ["shoes", "sneakers", "boots", "sandals", "loafers", "heels"],
        "category_terms": ["shoes", "footwear"],
        "brands": ["nike", "adidas", "puma", "reebok"],
        "conflicts": [],
    },
    "home": {
        "pattern": r"furniture|sofa|chair|\btable\b|\bbed\b|desk|lamp|decor|kitchen|bathroom",
        "name_terms": ["sofa", "chair", "table", "bed", "desk", "lamp"],
        "category_terms": ["home", "furniture", "kitchen", "decor"],
        "brands": [],
        "conflicts": [],
    },
    "books": {
        "pattern": r"\bbooks?\b|novel|textbook|magazine|comic|\bebooks?\b|audiobook|paperback",
        "name_terms": ["book", "novel", "textbook", "magazine", "comic", "paperback"],
        "category_terms": ["books", "book"],
        "brands": [],
        "conflicts": [],
    },
    "tv": {
        "pattern": r"\btv\b|television|smart tv|oled|qled",
        "name_terms": ["tv", "television"],
        "category_terms": ["tv", "tvs", "television", "televisions"],
        "brands": ["lg", "sony", "tcl", "hisense"],
        "conflicts": ["phone", "tablet"],
    },
}

# Brand mentioned in the query -> related brands that earn a small bonus.
BRAND_RELATIONSHIPS = {
    "apple": {"competitors": ["samsung", "google", "dell", "hp"], "complementary": ["beats", "logitech"]},
    "samsung": {"competitors": ["apple", "google", "lg", "sony"], "complementary": ["akg", "logitech"]},
    "google": {"competitors": ["apple", "samsung", "microsoft", "amazon"], "complementary": ["logitech", "anker"]},
    "dell": {"competitors": ["hp", "lenovo", "asus", "acer"], "complementary": ["microsoft", "intel"]},
    "hp": {"competitors": ["dell", "lenovo", "asus", "acer"], "complementary": ["microsoft", "intel"]},
    "nike": {"competitors": ["adidas", "puma", "reebok", "under armour"], "complementary": ["apple", "garmin"]},
    "adidas": {"competitors": ["nike", "puma", "reebok", "under armour"], "complementary": ["apple", "garmin"]},
}
