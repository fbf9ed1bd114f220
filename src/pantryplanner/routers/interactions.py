"""API routes for recording recipe views and likes."""

from typing import Annotated, Literal

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, Field

from pantryplanner.logging_config import get_logger
from pantryplanner.recipes.repository import InteractionRepository
from pantryplanner.routers.recipes import get_interaction_repository
from pantryplanner.schemas import PopularityStats

logger = get_logger(__name__)

router = APIRouter(prefix="/api/v1/recipe-interactions", tags=["interactions"])


class InteractionRequest(BaseModel):
    """A view or like of a recipe."""

    recipe_id: int
    recipe_title: str = Field(min_length=1)
    recipe_image_url: str | None = None
    interaction_type: Literal["view", "like"]


class InteractionResponse(BaseModel):
    ok: bool = True


class PopularRecipesResponse(BaseModel):
    recipes: list[PopularityStats]
    total: int


@router.post("", response_model=InteractionResponse, status_code=status.HTTP_201_CREATED)
async def record_interaction(
    request: InteractionRequest,
    interactions: InteractionRepository = Depends(get_interaction_repository),
) -> InteractionResponse:
    """Record that a student viewed or liked a recipe."""
    await interactions.record(
        recipe_id=request.recipe_id,
        recipe_title=request.recipe_title,
        interaction_type=request.interaction_type,
        recipe_image_url=request.recipe_image_url,
    )
    logger.debug(f"Recorded {request.interaction_type} for recipe {request.recipe_id}")
    return InteractionResponse()


@router.get("/popular", response_model=PopularRecipesResponse)
async def popular_recipes(
    limit: Annotated[int, Query(ge=1, le=200, description="Max recipes to return")] = 50,
    interactions: InteractionRepository = Depends(get_interaction_repository),
) -> PopularRecipesResponse:
    """Recipes with the most interactions and their view and like counts."""
    stats = await interactions.popularity_stats(limit=limit)
    return PopularRecipesResponse(recipes=stats, total=len(stats))
