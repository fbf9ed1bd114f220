"""Join provider results with cached detail and pantry supply."""

from collections.abc import Sequence

from pantryplanner.ingest.connectors.spoonacular import ProviderRecipeSummary
from pantryplanner.logging_config import get_logger
from pantryplanner.pantry import PantrySnapshot, find_match
from pantryplanner.schemas import (
    CachedRecipeRecord,
    EnrichedRecipe,
    RecipeIngredient,
    UpcomingIngredient,
)

logger = get_logger(__name__)


class RecipeEnricher:
    """Annotates recipes with cache fields and ingredients that are on the way."""

    def __init__(self, pantry: PantrySnapshot | None = None):
        self._upcoming_dates = pantry.upcoming_dates() if pantry else {}

    def upcoming_for(self, missed: Sequence[RecipeIngredient]) -> list[UpcomingIngredient]:
        """Missed ingredients that fuzzy-match a shipment or future-dated item."""
        upcoming = []
        for ingredient in missed:
            match = find_match(ingredient.name, self._upcoming_dates)
            if match is not None:
                upcoming.append(UpcomingIngredient(name=ingredient.name, available_date=match[1]))
        return upcoming

    def enrich(
        self,
        summary: ProviderRecipeSummary,
        cached: CachedRecipeRecord | None = None,
    ) -> EnrichedRecipe:
        """Merge a search result with its cache row, if any."""
        recipe = EnrichedRecipe(
            id=summary.id,
            title=summary.title,
            image=summary.image,
            used_ingredients=summary.used_ingredients,
            missed_ingredients=summary.missed_ingredients,
            used_count=summary.used_count,
            missed_count=summary.missed_count,
            likes=summary.likes,
            upcoming_ingredients=self.upcoming_for(summary.missed_ingredients),
        )
        if cached is None:
            return recipe

        return recipe.model_copy(
            update={
                "nutrition": cached.nutrition,
                "cuisines": cached.cuisines,
                "dietary_tags": cached.dietary_tags,
                "ready_in_minutes": cached.ready_in_minutes,
                "source_url": cached.source_url,
                "instructions": cached.instructions,
                "meal_type": cached.meal_type,
            }
        )

    def enrich_all(
        self,
        summaries: Sequence[ProviderRecipeSummary],
        cached: dict[int, CachedRecipeRecord],
    ) -> list[EnrichedRecipe]:
        enriched = [self.enrich(summary, cached.get(summary.id)) for summary in summaries]
        logger.info(
            f"Enriched {len(enriched)} recipes, "
            f"{sum(1 for s in summaries if s.id in cached)} with cached detail"
        )
        return enriched

    def from_cache(
        self,
        rows: Sequence[CachedRecipeRecord],
        ingredient_names: Sequence[str],
        limit: int = 24,
    ) -> list[EnrichedRecipe]:
        """
        Build match results from cache rows without calling the provider.

        Each row's ingredients are split into used and missed by exact
        lower-cased membership in the query set. Results are ordered by used
        count, most first, and capped at ``limit``.
        """
        query = {name.strip().lower() for name in ingredient_names}
        recipes = []
        for row in rows:
            used = [ing for ing in row.ingredients if ing.key in query]
            missed = [ing for ing in row.ingredients if ing.key not in query]
            recipes.append(
                EnrichedRecipe(
                    id=row.provider_id,
                    title=row.title,
                    image=row.image_url,
                    used_ingredients=used,
                    missed_ingredients=missed,
                    used_count=len(used),
                    missed_count=len(missed),
                    upcoming_ingredients=self.upcoming_for(missed),
                    nutrition=row.nutrition,
                    cuisines=row.cuisines,
                    dietary_tags=row.dietary_tags,
                    ready_in_minutes=row.ready_in_minutes,
                    source_url=row.source_url,
                    instructions=row.instructions,
                    meal_type=row.meal_type,
                )
            )

        recipes.sort(key=lambda r: r.used_count, reverse=True)
        return recipes[:limit]


def compute_buy_count(recipe: EnrichedRecipe) -> int:
    """Missed ingredients that are not arriving via a shipment or restock."""
    return len(recipe.purchase_names())


def apply_budget_filter(
    recipes: Sequence[EnrichedRecipe],
    max_buy_items: int | None,
) -> list[EnrichedRecipe]:
    """
    Keep recipes whose buy count fits the cap.

    Args:
        recipes: Candidate recipes.
        max_buy_items: Purchase cap. None disables the filter; 0 allows
            pantry-only recipes.

    Returns:
        Surviving recipes in their original order.
    """
    if max_buy_items is None:
        return list(recipes)

    kept = [recipe for recipe in recipes if compute_buy_count(recipe) <= max_buy_items]
    logger.info(f"Budget filter (max {max_buy_items}): kept {len(kept)} of {len(recipes)}")
    return kept
