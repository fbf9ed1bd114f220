"""API routes for weekly meal-plan assembly, grocery lists and calendar export."""

from datetime import date

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel, Field

from pantryplanner.config import get_settings
from pantryplanner.logging_config import get_logger
from pantryplanner.pantry import PantrySnapshot
from pantryplanner.pantry.repository import PantryRepository
from pantryplanner.plan.assembler import MealPlan, MealPlanAssembler
from pantryplanner.plan.calendar import export_ics
from pantryplanner.plan.grocery_list import build_grocery_list_from_snapshot, format_grocery_text
from pantryplanner.routers.recipes import get_pantry_repository
from pantryplanner.schemas import (
    GroceryItem,
    MealType,
    RecipeNutrition,
    ScoredRecipe,
    StudentPreferences,
    Weekday,
)

logger = get_logger(__name__)

router = APIRouter(prefix="/api/v1/meal-plans", tags=["meal-plans"])

NOT_ENOUGH_RECIPES = (
    "Not enough recipes to fill every meal. Like more recipes or raise your buy limit."
)


# =============================================================================
# Request/Response Schemas
# =============================================================================


class MealPlanRequest(BaseModel):
    """Liked recipes and the preferences to plan with."""

    liked_recipes: list[ScoredRecipe]
    preferences: StudentPreferences = Field(default_factory=StudentPreferences)
    today: date | None = Field(None, description="Defaults to the server's current date")


class CalendarRequest(MealPlanRequest):
    week_start: date | None = Field(None, description="Any date in the week to export")


class PlannedMeal(BaseModel):
    """One slot of the plan."""

    day: Weekday
    meal_type: MealType
    state: str
    recipe: ScoredRecipe | None = None


class MealPlanResponse(BaseModel):
    """Assembled plan with its grocery list."""

    meal_types: list[MealType]
    meals: list[PlannedMeal]
    buy_items: list[str]
    daily_totals: dict[Weekday, RecipeNutrition]
    empty_slot_count: int
    grocery_list: list[GroceryItem]
    grocery_text: str
    notice: str | None = None


# =============================================================================
# Helper Functions
# =============================================================================


async def _assemble(
    request: MealPlanRequest, pantry: PantryRepository
) -> tuple[MealPlan, PantrySnapshot]:
    snapshot = await pantry.snapshot(request.today)
    assembler = MealPlanAssembler(macro_tolerance=get_settings().macro_tolerance)
    plan = assembler.assemble(request.liked_recipes, request.preferences, snapshot)
    return plan, snapshot


# =============================================================================
# Endpoints
# =============================================================================


@router.post("", response_model=MealPlanResponse)
async def create_meal_plan(
    request: MealPlanRequest,
    pantry: PantryRepository = Depends(get_pantry_repository),
) -> MealPlanResponse:
    """
    Assemble a Mon-Fri plan from liked recipes.

    Slots that no recipe can fill within the buy limit and macro goals are
    left empty and reported through ``notice``.
    """
    logger.info(
        f"Creating meal plan from {len(request.liked_recipes)} liked recipes, "
        f"max_buy={request.preferences.max_buy_items}"
    )
    plan, snapshot = await _assemble(request, pantry)
    grocery = build_grocery_list_from_snapshot(plan, snapshot)

    return MealPlanResponse(
        meal_types=plan.meal_types,
        meals=[
            PlannedMeal(
                day=slot.day, meal_type=slot.meal_type, state=slot.state.value, recipe=slot.recipe
            )
            for slot in plan.iter_slots()
        ],
        buy_items=sorted(plan.buy_items),
        daily_totals=plan.daily_totals,
        empty_slot_count=len(plan.empty_slots),
        grocery_list=grocery,
        grocery_text=format_grocery_text(grocery),
        notice=NOT_ENOUGH_RECIPES if plan.empty_slots else None,
    )


@router.post("/calendar")
async def export_meal_plan_calendar(
    request: CalendarRequest,
    pantry: PantryRepository = Depends(get_pantry_repository),
) -> Response:
    """Assemble a plan and download it as an iCalendar file."""
    plan, snapshot = await _assemble(request, pantry)
    ics = export_ics(plan, request.week_start or snapshot.today, get_settings().public_base_url)
    return Response(
        content=ics,
        media_type="text/calendar; charset=utf-8",
        headers={"Content-Disposition": 'attachment; filename="meal-plan.ics"'},
    )
