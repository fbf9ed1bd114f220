"""API routes for ingredient-based recipe search and scoring."""

from collections.abc import AsyncIterator
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from pantryplanner.config import get_settings
from pantryplanner.database import get_db
from pantryplanner.ingest.connectors.spoonacular import (
    SpoonacularConnector,
    diet_for_restrictions,
)
from pantryplanner.logging_config import get_logger
from pantryplanner.pantry.repository import PantryRepository
from pantryplanner.recipes.cache import RecipeCacheGateway
from pantryplanner.recipes.repository import InteractionRepository, RecipeCacheRepository
from pantryplanner.recipes.scoring import RecipeScorer
from pantryplanner.recipes.service import RecipeService
from pantryplanner.schemas import EnrichedRecipe, ScoredRecipe, StudentPreferences

logger = get_logger(__name__)

router = APIRouter(prefix="/api/v1/recipes", tags=["recipes"])


# =============================================================================
# Request/Response Schemas
# =============================================================================


class RecipeSearchResponse(BaseModel):
    """Recipes matching an ingredient query."""

    recipes: list[EnrichedRecipe]
    total: int
    source: str


class ScoreRequest(BaseModel):
    """Recipes to score against a student's preferences."""

    recipes: list[EnrichedRecipe]
    preferences: StudentPreferences = Field(default_factory=StudentPreferences)
    include_popularity: bool = True


class ScoredRecipesResponse(BaseModel):
    """Recipes sorted by score, best first."""

    recipes: list[ScoredRecipe]
    total: int


# =============================================================================
# Dependencies
# =============================================================================


def get_pantry_repository(db: AsyncSession = Depends(get_db)) -> PantryRepository:
    return PantryRepository(db)


def get_interaction_repository(db: AsyncSession = Depends(get_db)) -> InteractionRepository:
    return InteractionRepository(db)


async def get_recipe_service(
    db: AsyncSession = Depends(get_db),
) -> AsyncIterator[RecipeService]:
    """Recipe service backed by the database cache and the Spoonacular API."""
    settings = get_settings()
    # Without a key the cache still serves; only provider calls fail
    connector = SpoonacularConnector() if settings.has_provider_key else None
    gateway = RecipeCacheGateway(
        RecipeCacheRepository(db),
        connector,
        max_age_days=settings.cache_max_age_days,
        hit_threshold=settings.cache_hit_threshold,
        timeout=settings.provider_timeout,
    )
    try:
        yield RecipeService(gateway, PantryRepository(db), settings.search_result_count)
    finally:
        if connector is not None:
            await connector.close()


# =============================================================================
# Endpoints
# =============================================================================


@router.get("", response_model=RecipeSearchResponse)
async def find_recipes(
    ingredients: Annotated[
        str | None,
        Query(description="Comma-separated ingredients; omit to use everything in stock"),
    ] = None,
    diet: Annotated[str | None, Query(description="Provider diet tag, e.g. vegan")] = None,
    restrictions: Annotated[
        list[str], Query(description="Dietary restrictions, used when no diet is given")
    ] = [],
    max_buy_items: Annotated[
        int | None, Query(ge=0, description="Max ingredients to buy; 0 = pantry only")
    ] = None,
    refresh: Annotated[bool, Query(description="Bypass the recipe cache")] = False,
    allow_stale: Annotated[
        bool, Query(description="Serve stale cache rows if the provider fails")
    ] = True,
    service: RecipeService = Depends(get_recipe_service),
    pantry: PantryRepository = Depends(get_pantry_repository),
) -> RecipeSearchResponse:
    """
    Find recipes for a set of ingredients.

    Fresh cache rows are served when there are enough of them; otherwise the
    recipe provider is queried and new results are cached. Recipes needing
    more purchases than ``max_buy_items`` are dropped.
    """
    if ingredients is None:
        names = (await pantry.snapshot()).in_stock_names()
    else:
        names = [name.strip() for name in ingredients.split(",") if name.strip()]

    if not names:
        return RecipeSearchResponse(recipes=[], total=0, source="empty")

    diet = diet or diet_for_restrictions(restrictions)
    logger.info(f"Finding recipes: {len(names)} ingredients, diet={diet}, max_buy={max_buy_items}")

    result = await service.find_recipes(
        names,
        diet=diet,
        max_buy_items=max_buy_items,
        force_refresh=refresh,
        allow_stale_fallback=allow_stale,
    )
    return RecipeSearchResponse(
        recipes=result.recipes, total=len(result.recipes), source=result.source
    )


@router.post("/score", response_model=ScoredRecipesResponse)
async def score_recipes(
    request: ScoreRequest,
    interactions: InteractionRepository = Depends(get_interaction_repository),
) -> ScoredRecipesResponse:
    """Score recipes against preferences and sort them, best first."""
    popularity = {}
    if request.include_popularity:
        ids = [recipe.id for recipe in request.recipes]
        stats = await interactions.popularity_stats(limit=len(ids), recipe_ids=ids)
        popularity = {s.recipe_id: s for s in stats}

    scorer = RecipeScorer(budget_penalty_scale=get_settings().budget_penalty_scale)
    scored = scorer.score_all(request.recipes, request.preferences, popularity)
    return ScoredRecipesResponse(recipes=scored, total=len(scored))
