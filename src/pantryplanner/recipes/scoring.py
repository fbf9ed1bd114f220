"""Multi-factor recipe scoring against student preferences."""

import math
from collections.abc import Mapping, Sequence

from pantryplanner.logging_config import get_logger
from pantryplanner.pantry import names_match
from pantryplanner.recipes.enrichment import compute_buy_count
from pantryplanner.schemas import EnrichedRecipe, PopularityStats, ScoredRecipe, StudentPreferences

logger = get_logger(__name__)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves rounded up."""
    return math.floor(value + 0.5)


class RecipeScorer:
    """
    Scores recipes by:
    - Dietary compliance (soft penalty, recipe stays listed)
    - Purchases needed relative to the budget
    - Macro proximity to the per-meal share of daily goals
    - Cuisine preference
    - Pantry coverage
    - Popularity among other students
    - Disliked ingredients
    """

    DIETARY_PENALTY = 50
    MACRO_MAX = 30
    MACRO_NEUTRAL = 15  # awarded when goals or nutrition are unknown
    CUISINE_BONUS = 20
    COVERAGE_MAX = 20
    POPULARITY_MAX = 10
    DISLIKE_PENALTY = 5

    def __init__(self, budget_penalty_scale: int = 15):
        self.budget_penalty_scale = budget_penalty_scale

    def dietary_score(self, recipe: EnrichedRecipe, prefs: StudentPreferences) -> int:
        # Without a cache row the tags are unknown, not empty
        if not prefs.dietary_restrictions or recipe.dietary_tags is None:
            return 0
        tags = {tag.lower() for tag in recipe.dietary_tags}
        if all(restriction.lower() in tags for restriction in prefs.dietary_restrictions):
            return 0
        return -self.DIETARY_PENALTY

    def budget_score(self, buy_count: int, prefs: StudentPreferences) -> int:
        if buy_count <= 0 or not prefs.max_buy_items:
            return 0
        return -round_half_up(self.budget_penalty_scale * buy_count / prefs.max_buy_items)

    def macro_score(self, recipe: EnrichedRecipe, prefs: StudentPreferences) -> int:
        goals = prefs.macro_goals()
        if not goals or recipe.nutrition is None:
            return self.MACRO_NEUTRAL

        proximities = []
        for name, goal in goals.items():
            per_meal_goal = goal / prefs.meals_per_day
            actual = getattr(recipe.nutrition, name)
            proximities.append(max(0.0, 1 - abs(actual - per_meal_goal) / per_meal_goal))
        return round_half_up(sum(proximities) / len(proximities) * self.MACRO_MAX)

    def cuisine_score(self, recipe: EnrichedRecipe, prefs: StudentPreferences) -> int:
        if not prefs.cuisine_preferences or not recipe.cuisines:
            return 0
        preferred = {c.lower() for c in prefs.cuisine_preferences}
        if any(cuisine.lower() in preferred for cuisine in recipe.cuisines):
            return self.CUISINE_BONUS
        return 0

    def coverage_score(self, recipe: EnrichedRecipe) -> int:
        total = recipe.used_count + recipe.missed_count
        if total == 0:
            return 0
        return round_half_up(self.COVERAGE_MAX * recipe.used_count / total)

    def popularity_score(self, stats: PopularityStats | None) -> int:
        if stats is None:
            return 0
        return min(
            self.POPULARITY_MAX,
            round_half_up((stats.like_count * 3 + stats.view_count) / 5),
        )

    def dislike_score(self, recipe: EnrichedRecipe, prefs: StudentPreferences) -> int:
        disliked = {d.strip().lower() for d in prefs.disliked_ingredients if d.strip()}
        names = [ing.name for ing in recipe.all_ingredients()]
        hits = sum(1 for d in disliked if any(names_match(d, name) for name in names))
        return -self.DISLIKE_PENALTY * hits

    def score(
        self,
        recipe: EnrichedRecipe,
        prefs: StudentPreferences,
        popularity: Mapping[int, PopularityStats] | None = None,
    ) -> ScoredRecipe:
        """
        Score a single recipe.

        Args:
            recipe: Enriched recipe.
            prefs: Student preferences.
            popularity: Interaction counters by recipe id.

        Returns:
            The recipe with its score and buy count attached.
        """
        buy_count = compute_buy_count(recipe)
        total = (
            self.dietary_score(recipe, prefs)
            + self.budget_score(buy_count, prefs)
            + self.macro_score(recipe, prefs)
            + self.cuisine_score(recipe, prefs)
            + self.coverage_score(recipe)
            + self.popularity_score((popularity or {}).get(recipe.id))
            + self.dislike_score(recipe, prefs)
        )
        return ScoredRecipe(
            **recipe.model_dump(exclude={"score", "buy_count"}), score=total, buy_count=buy_count
        )

    def score_all(
        self,
        recipes: Sequence[EnrichedRecipe],
        prefs: StudentPreferences,
        popularity: Mapping[int, PopularityStats] | None = None,
    ) -> list[ScoredRecipe]:
        """Score and sort recipes, highest first. Ties keep retrieval order."""
        scored = [self.score(recipe, prefs, popularity) for recipe in recipes]
        scored.sort(key=lambda r: r.score, reverse=True)
        if scored:
            logger.info(
                f"Scored {len(scored)} recipes (top {scored[0].score}, bottom {scored[-1].score})"
            )
        return scored


def score_recipes(
    recipes: Sequence[EnrichedRecipe],
    prefs: StudentPreferences,
    popularity_stats: Sequence[PopularityStats] | Mapping[int, PopularityStats] | None = None,
    budget_penalty_scale: int = 15,
) -> list[ScoredRecipe]:
    """Score recipes with default weights. Accepts stats as a list or an id mapping."""
    if popularity_stats is None:
        popularity: Mapping[int, PopularityStats] = {}
    elif isinstance(popularity_stats, Mapping):
        popularity = popularity_stats
    else:
        popularity = {stats.recipe_id: stats for stats in popularity_stats}
    return RecipeScorer(budget_penalty_scale).score_all(recipes, prefs, popularity)
