"""Common data schemas shared by the recipe and planning pipeline."""

from datetime import date, datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

MealType = Literal["breakfast", "lunch", "dinner", "unknown"]
# Meal types a plan can have slots for
PlannedMealType = Literal["breakfast", "lunch", "dinner"]
Weekday = Literal["Mon", "Tue", "Wed", "Thu", "Fri"]
GroceryStatus = Literal["in-stock", "arriving-soon", "need-to-buy"]

WEEKDAYS: tuple[Weekday, ...] = ("Mon", "Tue", "Wed", "Thu", "Fri")
MEAL_TYPE_ORDER: tuple[PlannedMealType, ...] = ("breakfast", "lunch", "dinner")


def _none_to_list(value: Any) -> Any:
    return [] if value is None else value


class RecipeNutrition(BaseModel):
    """Per-serving macro nutrients. Missing values count as zero."""

    calories: float = 0.0
    protein: float = 0.0
    carbs: float = 0.0
    fat: float = 0.0

    @field_validator("calories", "protein", "carbs", "fat", mode="before")
    @classmethod
    def _default_zero(cls, value: Any) -> Any:
        return 0.0 if value is None else value

    def plus(self, other: "RecipeNutrition | None") -> "RecipeNutrition":
        """Return the element-wise sum with another nutrition record."""
        if other is None:
            return self
        return RecipeNutrition(
            calories=self.calories + other.calories,
            protein=self.protein + other.protein,
            carbs=self.carbs + other.carbs,
            fat=self.fat + other.fat,
        )


class RecipeIngredient(BaseModel):
    """A structured ingredient line of a recipe."""

    model_config = ConfigDict(extra="ignore")

    id: int | None = None
    name: str = ""
    amount: float = 0.0
    unit: str = ""
    original: str = ""

    @field_validator("name", "unit", "original", mode="before")
    @classmethod
    def _default_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("amount", mode="before")
    @classmethod
    def _default_amount(cls, value: Any) -> Any:
        return 0.0 if value is None else value

    @property
    def key(self) -> str:
        """Lower-cased name used for matching and aggregation."""
        return self.name.strip().lower()


class UpcomingIngredient(BaseModel):
    """A missing ingredient that a shipment or restock will provide."""

    name: str
    available_date: date


class InventoryEntry(BaseModel):
    """Read-only view of a shared-pantry inventory row."""

    model_config = ConfigDict(from_attributes=True)

    name: str
    category: str = ""
    quantity: float = Field(0.0, ge=0)
    unit: str = ""
    dietary_tags: list[str] = Field(default_factory=list)
    date_available: date | None = None

    @field_validator("dietary_tags", mode="before")
    @classmethod
    def _coerce_tags(cls, value: Any) -> Any:
        return _none_to_list(value)


class ShipmentEntry(BaseModel):
    """Read-only view of an expected shipment."""

    model_config = ConfigDict(from_attributes=True)

    item_name: str
    expected_quantity: float = 0.0
    unit: str = ""
    expected_date: date
    notes: str | None = None


class CachedRecipeRecord(BaseModel):
    """Validated shape of a recipe cache row."""

    model_config = ConfigDict(from_attributes=True)

    provider_id: int
    title: str
    image_url: str | None = None
    ingredient_names: list[str] = Field(default_factory=list)
    ingredients: list[RecipeIngredient] = Field(default_factory=list)
    instructions: str | None = None
    nutrition: RecipeNutrition | None = None
    dietary_tags: list[str] = Field(default_factory=list)
    cuisines: list[str] = Field(default_factory=list)
    ready_in_minutes: int | None = None
    source_url: str | None = None
    meal_type: MealType = "unknown"
    last_fetched_at: datetime

    @field_validator("ingredient_names", "ingredients", "dietary_tags", "cuisines", mode="before")
    @classmethod
    def _coerce_lists(cls, value: Any) -> Any:
        return _none_to_list(value)


class EnrichedRecipe(BaseModel):
    """A matched recipe joined with cached detail and shipment info."""

    id: int
    title: str
    image: str | None = None
    used_ingredients: list[RecipeIngredient] = Field(default_factory=list)
    missed_ingredients: list[RecipeIngredient] = Field(default_factory=list)
    used_count: int = 0
    missed_count: int = 0
    likes: int = 0
    upcoming_ingredients: list[UpcomingIngredient] = Field(default_factory=list)

    # Cache fields, None when no cache row exists for the recipe
    nutrition: RecipeNutrition | None = None
    cuisines: list[str] | None = None
    dietary_tags: list[str] | None = None
    ready_in_minutes: int | None = None
    source_url: str | None = None
    instructions: str | None = None
    meal_type: MealType | None = None

    @property
    def effective_meal_type(self) -> MealType:
        """Meal type with missing classification treated as unknown."""
        return self.meal_type or "unknown"

    def all_ingredients(self) -> list[RecipeIngredient]:
        """Used and missed ingredients, in that order."""
        return [*self.used_ingredients, *self.missed_ingredients]

    def purchase_names(self) -> list[str]:
        """Lower-cased missed ingredient names that no shipment covers."""
        upcoming = {u.name.strip().lower() for u in self.upcoming_ingredients}
        return [ing.key for ing in self.missed_ingredients if ing.key not in upcoming]


class ScoredRecipe(EnrichedRecipe):
    """Enriched recipe with its desirability score."""

    score: int = 0
    buy_count: int = 0


class StudentPreferences(BaseModel):
    """Per-request nutrition, budget and taste constraints."""

    model_config = ConfigDict(frozen=True)

    dietary_restrictions: list[str] = Field(default_factory=list)
    calorie_goal: float | None = Field(None, ge=0)
    protein_goal: float | None = Field(None, ge=0)
    carb_goal: float | None = Field(None, ge=0)
    fat_goal: float | None = Field(None, ge=0)
    cuisine_preferences: list[str] = Field(default_factory=list)
    meals_per_day: int = Field(3, ge=1, le=3)
    selected_meal_types: list[PlannedMealType] | None = None
    disliked_ingredients: list[str] = Field(default_factory=list)
    max_buy_items: int | None = Field(None, ge=0, description="None = unlimited, 0 = pantry only")
    swipe_session_size: int | None = Field(None, ge=1, description="None = configured default")

    def macro_goals(self) -> dict[str, float]:
        """Daily macro goals that are set, keyed by nutrition field name."""
        goals = {
            "calories": self.calorie_goal,
            "protein": self.protein_goal,
            "carbs": self.carb_goal,
            "fat": self.fat_goal,
        }
        return {name: goal for name, goal in goals.items() if goal}

    def active_meal_types(self) -> list[MealType]:
        """Meal types to plan, in breakfast, lunch, dinner order."""
        if self.selected_meal_types:
            chosen = set(self.selected_meal_types)
            return [mt for mt in MEAL_TYPE_ORDER if mt in chosen]
        if self.meals_per_day >= 3:
            return list(MEAL_TYPE_ORDER)
        if self.meals_per_day == 2:
            return ["lunch", "dinner"]
        return ["dinner"]


class PopularityStats(BaseModel):
    """Aggregate interaction counters for one recipe."""

    model_config = ConfigDict(from_attributes=True)

    recipe_id: int
    recipe_title: str = ""
    recipe_image_url: str | None = None
    view_count: int = 0
    like_count: int = 0


class GroceryItem(BaseModel):
    """One aggregated line of the grocery list."""

    name: str
    amount: float
    unit: str
    status: GroceryStatus
    available_date: date | None = None
    meal_types: list[MealType] = Field(default_factory=list)
