"""Cache-vs-fetch decisions for provider recipes."""

import asyncio
from collections.abc import Callable
from datetime import datetime, timedelta

from pantryplanner.ingest.connectors.base import (
    ConfigurationError,
    ProviderError,
    ProviderTimeoutError,
    RecipeSearchConnector,
)
from pantryplanner.ingest.connectors.spoonacular import (
    ProviderRecipeDetail,
    ProviderRecipeSummary,
)
from pantryplanner.logging_config import get_logger
from pantryplanner.recipes.repository import RecipeCacheRepository
from pantryplanner.schemas import CachedRecipeRecord, MealType, RecipeNutrition

logger = get_logger(__name__)


# Ingredients every kitchen is assumed to have. They are left out of the
# provider query so they don't crowd out real pantry items.
PANTRY_STAPLES = frozenset(
    {
        "salt",
        "black pepper",
        "granulated sugar",
        "brown sugar",
        "all-purpose flour",
        "baking powder",
        "baking soda",
        "vanilla extract",
        "cinnamon",
        "cumin",
        "paprika",
        "chili powder",
        "dried oregano",
        "dried basil",
        "garlic powder",
        "onion powder",
        "red pepper flakes",
        "cornstarch",
        "white vinegar",
        "apple cider vinegar",
    }
)

BREAKFAST_DISH_TYPES = frozenset({"breakfast", "morning meal", "brunch"})
LUNCH_DISH_TYPES = frozenset({"lunch", "soup", "salad", "sandwich", "snack"})
DINNER_DISH_TYPES = frozenset({"dinner", "main course", "main dish"})


def classify_meal_type(dish_types: list[str]) -> MealType:
    """Derive a meal type from provider dish-type tags."""
    tags = {tag.strip().lower() for tag in dish_types}
    if tags & BREAKFAST_DISH_TYPES:
        return "breakfast"
    if tags & LUNCH_DISH_TYPES:
        return "lunch"
    if tags & DINNER_DISH_TYPES:
        return "dinner"
    return "unknown"


def strip_pantry_staples(ingredient_names: list[str]) -> list[str]:
    """Drop staples from a query. Falls back to the full list if only staples remain."""
    stripped = [name for name in ingredient_names if name.strip().lower() not in PANTRY_STAPLES]
    return stripped or list(ingredient_names)


def build_cache_record(detail: ProviderRecipeDetail, fetched_at: datetime) -> CachedRecipeRecord:
    """Coerce a provider detail record into the cache row shape."""
    ingredients = [ing for ing in detail.extended_ingredients if ing.name]
    return CachedRecipeRecord(
        provider_id=detail.id,
        title=detail.title,
        image_url=detail.image,
        ingredient_names=sorted({ing.key for ing in ingredients}),
        ingredients=ingredients,
        instructions=detail.instructions,
        nutrition=RecipeNutrition(
            calories=detail.nutrient("Calories"),
            protein=detail.nutrient("Protein"),
            carbs=detail.nutrient("Carbohydrates"),
            fat=detail.nutrient("Fat"),
        ),
        dietary_tags=detail.diets,
        cuisines=detail.cuisines,
        ready_in_minutes=detail.ready_in_minutes,
        source_url=detail.source_url,
        meal_type=classify_meal_type(detail.dish_types),
        last_fetched_at=fetched_at,
    )


class RecipeCacheGateway:
    """
    Decides between the recipe cache and the external provider.

    The gateway makes at most one search call and one bulk-detail call per
    refresh, and both share a single deadline of ``timeout`` seconds. Provider
    failures on the search call propagate to the caller; the cache is never
    modified by a failed refresh.
    """

    def __init__(
        self,
        repository: RecipeCacheRepository,
        connector: RecipeSearchConnector | None,
        max_age_days: int = 7,
        hit_threshold: int = 10,
        timeout: float = 25.0,
        now: Callable[[], datetime] = datetime.utcnow,
    ):
        self.repository = repository
        self.connector = connector
        self.max_age_days = max_age_days
        self.hit_threshold = hit_threshold
        self.timeout = timeout
        self._now = now

    def freshness_cutoff(self) -> datetime:
        """Oldest last-fetched instant still considered fresh."""
        return self._now() - timedelta(days=self.max_age_days)

    async def lookup_by_ingredient_overlap(
        self, ingredient_names: list[str]
    ) -> list[CachedRecipeRecord]:
        """Fresh cache rows sharing at least one ingredient with the query."""
        names = sorted({name.strip().lower() for name in ingredient_names if name.strip()})
        rows = await self.repository.find_by_ingredients(
            names, fetched_after=self.freshness_cutoff()
        )
        logger.debug(f"Cache overlap lookup for {len(names)} names: {len(rows)} fresh rows")
        return rows

    async def lookup_any_age(self, ingredient_names: list[str]) -> list[CachedRecipeRecord]:
        """Cache rows sharing an ingredient with the query, stale ones included."""
        names = sorted({name.strip().lower() for name in ingredient_names if name.strip()})
        return await self.repository.find_by_ingredients(names)

    def is_cache_sufficient(self, rows: list[CachedRecipeRecord]) -> bool:
        return len(rows) >= self.hit_threshold

    async def get_cached(self, ids: list[int]) -> dict[int, CachedRecipeRecord]:
        """Cache rows for the given provider ids, regardless of age."""
        return await self.repository.get_many(ids)

    async def refresh_from_provider(
        self,
        ingredient_names: list[str],
        diet: str | None = None,
        count: int = 24,
    ) -> list[ProviderRecipeSummary]:
        """
        Search the provider and cache details for results without a fresh row.

        Args:
            ingredient_names: Query ingredients. Staples are left out of the
                outbound query.
            diet: Optional provider diet tag.
            count: Maximum number of search results.

        Returns:
            Provider search results, in provider order.

        Raises:
            ConfigurationError: If no connector is configured.
            ProviderError: If the search call fails.
            ProviderTimeoutError: If the search call outlives the budget.
        """
        if self.connector is None:
            raise ConfigurationError("Recipe search API key not configured")

        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.timeout

        query = strip_pantry_staples(ingredient_names)
        try:
            results = await asyncio.wait_for(
                self.connector.find_by_ingredients(query, diet=diet, count=count),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError as e:
            logger.error(f"Provider search exceeded the {self.timeout}s budget")
            raise ProviderTimeoutError(
                f"Recipe provider timed out after {self.timeout:.0f}s"
            ) from e
        if not results:
            return results

        ids = [result.id for result in results]
        fresh = await self.repository.fresh_ids(ids, self.freshness_cutoff())
        missing = [recipe_id for recipe_id in ids if recipe_id not in fresh]
        if not missing:
            logger.info(f"All {len(ids)} provider results already cached")
            return results

        remaining = deadline - loop.time()
        if remaining <= 0:
            logger.warning("No time left for bulk detail fetch, serving without detail")
            return results

        try:
            details = await asyncio.wait_for(
                self.connector.information_bulk(missing), timeout=remaining
            )
        except asyncio.TimeoutError:
            logger.warning(f"Bulk detail fetch ran past the {self.timeout}s budget")
            return results
        except ProviderError as e:
            # Search results are still usable without detail rows
            logger.warning(f"Bulk detail fetch failed, serving without detail: {e}")
            return results

        fetched_at = self._now()
        records = [build_cache_record(detail, fetched_at) for detail in details]
        await self.repository.upsert(records)
        logger.info(f"Cached {len(records)} of {len(missing)} uncached provider recipes")
        return results
