"""Recipe retrieval, enrichment and scoring."""

from pantryplanner.recipes.cache import (
    PANTRY_STAPLES,
    RecipeCacheGateway,
    build_cache_record,
    classify_meal_type,
)
from pantryplanner.recipes.enrichment import (
    RecipeEnricher,
    apply_budget_filter,
    compute_buy_count,
)
from pantryplanner.recipes.scoring import RecipeScorer, score_recipes
from pantryplanner.recipes.service import RecipeSearchResult, RecipeService

__all__ = [
    "PANTRY_STAPLES",
    "RecipeCacheGateway",
    "RecipeEnricher",
    "RecipeScorer",
    "RecipeSearchResult",
    "RecipeService",
    "apply_budget_filter",
    "build_cache_record",
    "classify_meal_type",
    "compute_buy_count",
    "score_recipes",
]
