"""API routes for building per-meal-type swipe queues."""

from fastapi import APIRouter
from pydantic import BaseModel, Field

from pantryplanner.config import get_settings
from pantryplanner.logging_config import get_logger
from pantryplanner.plan.swipe import build_sessions
from pantryplanner.schemas import MealType, ScoredRecipe, StudentPreferences

logger = get_logger(__name__)

router = APIRouter(prefix="/api/v1/swipe-sessions", tags=["swipe"])


class SwipeSessionRequest(BaseModel):
    """Scored recipes to split into review queues."""

    recipes: list[ScoredRecipe]
    preferences: StudentPreferences = Field(default_factory=StudentPreferences)
    session_size: int | None = Field(None, ge=1, le=50)


class SwipeQueue(BaseModel):
    """Review queue for one meal type."""

    meal_type: MealType
    recipes: list[ScoredRecipe]
    total: int


class SwipeSessionsResponse(BaseModel):
    sessions: list[SwipeQueue]


@router.post("", response_model=SwipeSessionsResponse)
async def create_swipe_sessions(request: SwipeSessionRequest) -> SwipeSessionsResponse:
    """
    Build one review queue per active meal type.

    Accept, reject and undo happen client side; the liked recipes are sent
    back to the meal-plan endpoint.
    """
    size = (
        request.session_size
        or request.preferences.swipe_session_size
        or get_settings().default_session_size
    )
    meal_types = request.preferences.active_meal_types()
    sessions = build_sessions(request.recipes, meal_types, size)

    logger.info(f"Built {len(sessions)} swipe sessions of up to {size} recipes")
    return SwipeSessionsResponse(
        sessions=[
            SwipeQueue(meal_type=s.meal_type, recipes=s.recipes, total=len(s.recipes))
            for s in sessions
        ]
    )
