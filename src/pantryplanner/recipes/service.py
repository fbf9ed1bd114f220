"""Ingredient-based recipe retrieval: cache, provider, enrichment and budget filter."""

from dataclasses import dataclass, field
from datetime import date
from typing import Literal

from pantryplanner.ingest.connectors.base import ProviderError
from pantryplanner.logging_config import get_logger
from pantryplanner.pantry import PantrySnapshot
from pantryplanner.pantry.repository import PantryRepository
from pantryplanner.recipes.cache import RecipeCacheGateway
from pantryplanner.recipes.enrichment import RecipeEnricher, apply_budget_filter
from pantryplanner.schemas import EnrichedRecipe

logger = get_logger(__name__)

ResultSource = Literal["empty", "cache", "api", "cache-fallback"]


@dataclass
class RecipeSearchResult:
    """Recipes found for a query and where they came from."""

    recipes: list[EnrichedRecipe] = field(default_factory=list)
    source: ResultSource = "empty"


class RecipeService:
    """Finds recipes for a set of ingredients, preferring fresh cache rows."""

    def __init__(
        self,
        gateway: RecipeCacheGateway,
        pantry_repository: PantryRepository | None = None,
        result_count: int = 24,
    ):
        self.gateway = gateway
        self.pantry_repository = pantry_repository
        self.result_count = result_count

    async def _pantry(self, today: date | None) -> PantrySnapshot | None:
        if self.pantry_repository is None:
            return None
        return await self.pantry_repository.snapshot(today)

    async def find_recipes(
        self,
        ingredient_names: list[str],
        diet: str | None = None,
        max_buy_items: int | None = None,
        force_refresh: bool = False,
        allow_stale_fallback: bool = False,
        today: date | None = None,
    ) -> RecipeSearchResult:
        """
        Find, enrich and budget-filter recipes for the given ingredients.

        Args:
            ingredient_names: Ingredients the student has access to.
            diet: Optional provider diet tag.
            max_buy_items: Purchase cap for the budget filter; None for no cap.
            force_refresh: Skip the cache lookup and go to the provider.
            allow_stale_fallback: Serve cached rows of any age if the provider fails.
            today: Day used to split pantry supply into current and upcoming.

        Returns:
            Matching recipes and the source that produced them.

        Raises:
            ProviderError: If the provider fails and no fallback rows are served.
        """
        names = [name.strip() for name in ingredient_names if name and name.strip()]
        if not names:
            return RecipeSearchResult()

        enricher = RecipeEnricher(await self._pantry(today))

        if not force_refresh:
            rows = await self.gateway.lookup_by_ingredient_overlap(names)
            if self.gateway.is_cache_sufficient(rows):
                logger.info(f"Serving {len(rows)} cached recipes for {len(names)} ingredients")
                recipes = enricher.from_cache(rows, names, self.result_count)
                return RecipeSearchResult(apply_budget_filter(recipes, max_buy_items), "cache")
            logger.info(
                f"Cache below threshold ({len(rows)} < {self.gateway.hit_threshold}), "
                "querying provider"
            )

        try:
            summaries = await self.gateway.refresh_from_provider(
                names, diet=diet, count=self.result_count
            )
        except ProviderError as e:
            if not allow_stale_fallback:
                raise
            rows = await self.gateway.lookup_any_age(names)
            if not rows:
                raise
            logger.warning(f"Provider failed ({e}), serving {len(rows)} cached rows of any age")
            recipes = enricher.from_cache(rows, names, self.result_count)
            return RecipeSearchResult(
                apply_budget_filter(recipes, max_buy_items), "cache-fallback"
            )

        cached = await self.gateway.get_cached([summary.id for summary in summaries])
        recipes = enricher.enrich_all(summaries, cached)
        return RecipeSearchResult(apply_budget_filter(recipes, max_buy_items), "api")
