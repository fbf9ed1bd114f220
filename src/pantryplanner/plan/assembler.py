"""Greedy weekly meal-plan assembly under purchase and macro limits."""

from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum

from pantryplanner.logging_config import get_logger
from pantryplanner.pantry import PantrySnapshot, matches
from pantryplanner.schemas import (
    WEEKDAYS,
    MealType,
    RecipeNutrition,
    ScoredRecipe,
    StudentPreferences,
    Weekday,
)

logger = get_logger(__name__)


class SlotState(str, Enum):
    UNFILLED = "unfilled"
    FILLED = "filled"
    EMPTY = "empty"


@dataclass
class MealSlot:
    """One weekday x meal-type cell of the plan."""

    day: Weekday
    meal_type: MealType
    state: SlotState = SlotState.UNFILLED
    recipe: ScoredRecipe | None = None

    def fill(self, recipe: ScoredRecipe) -> None:
        if self.state is not SlotState.UNFILLED:
            raise ValueError(f"Slot {self.day}/{self.meal_type} is already {self.state.value}")
        self.recipe = recipe
        self.state = SlotState.FILLED

    def leave_empty(self) -> None:
        if self.state is not SlotState.UNFILLED:
            raise ValueError(f"Slot {self.day}/{self.meal_type} is already {self.state.value}")
        self.state = SlotState.EMPTY


@dataclass
class MealPlan:
    """Five-day plan with the purchases and macro totals it implies."""

    meal_types: list[MealType]
    slots: dict[tuple[Weekday, MealType], MealSlot] = field(default_factory=dict)
    buy_items: set[str] = field(default_factory=set)
    daily_totals: dict[Weekday, RecipeNutrition] = field(default_factory=dict)

    @classmethod
    def blank(cls, meal_types: Sequence[MealType]) -> "MealPlan":
        plan = cls(meal_types=list(meal_types))
        for day in WEEKDAYS:
            plan.daily_totals[day] = RecipeNutrition()
            for meal_type in meal_types:
                plan.slots[(day, meal_type)] = MealSlot(day=day, meal_type=meal_type)
        return plan

    def get(self, day: Weekday, meal_type: MealType) -> ScoredRecipe | None:
        slot = self.slots.get((day, meal_type))
        return slot.recipe if slot else None

    def iter_slots(self) -> list[MealSlot]:
        """Slots in day order, then meal-type order."""
        return [self.slots[(day, mt)] for day in WEEKDAYS for mt in self.meal_types]

    @property
    def filled_slots(self) -> list[MealSlot]:
        return [slot for slot in self.iter_slots() if slot.state is SlotState.FILLED]

    @property
    def empty_slots(self) -> list[MealSlot]:
        return [slot for slot in self.iter_slots() if slot.state is SlotState.EMPTY]


class MealPlanAssembler:
    """
    Fills Mon-Fri x meal-type slots from a pool of liked recipes.

    Days are filled Monday first and meals breakfast first. Each meal type
    has a round-robin cursor so distinct recipes are used before any repeat.
    A candidate is placed only if the week's non-pantry purchases stay within
    ``max_buy_items`` and the day's macros stay within the goal times
    ``macro_tolerance``. Slots with no acceptable candidate are left empty.
    """

    def __init__(self, macro_tolerance: float = 1.10):
        self.macro_tolerance = macro_tolerance

    def assemble(
        self,
        liked_pool: Sequence[ScoredRecipe],
        prefs: StudentPreferences,
        pantry: PantrySnapshot | None = None,
    ) -> MealPlan:
        """
        Assemble a plan.

        Args:
            liked_pool: Liked recipes, typed by meal. Duplicate ids are ignored.
            prefs: Student preferences (meal types, budget, macro goals).
            pantry: Optional pantry snapshot; missed ingredients found in it
                don't count as purchases.

        Returns:
            The assembled plan.
        """
        meal_types = prefs.active_meal_types()
        plan = MealPlan.blank(meal_types)
        pools = self._group_pools(liked_pool)
        unknown_pool = pools.get("unknown", [])
        pantry_names = pantry.known_names() if pantry else []
        goals = prefs.macro_goals()

        cursors: dict[MealType, int] = {}
        unknown_cursors: dict[MealType, int] = {}

        for day in WEEKDAYS:
            for meal_type in meal_types:
                slot = plan.slots[(day, meal_type)]

                def fits(recipe: ScoredRecipe) -> bool:
                    return self._fits(recipe, plan, day, prefs, goals, pantry_names)

                chosen = self._pick(pools.get(meal_type, []), meal_type, cursors, fits)
                if chosen is None and unknown_pool:
                    chosen = self._pick(unknown_pool, meal_type, unknown_cursors, fits)

                if chosen is None:
                    slot.leave_empty()
                    logger.debug(f"No recipe fits {day}/{meal_type}, slot left empty")
                    continue

                chosen = chosen.model_copy(update={"meal_type": meal_type})
                slot.fill(chosen)
                plan.buy_items |= self._new_purchases(chosen, plan.buy_items, pantry_names)
                plan.daily_totals[day] = plan.daily_totals[day].plus(chosen.nutrition)

        logger.info(
            f"Assembled plan: {len(plan.filled_slots)} filled, {len(plan.empty_slots)} empty, "
            f"{len(plan.buy_items)} items to buy"
        )
        return plan

    @staticmethod
    def _group_pools(liked_pool: Sequence[ScoredRecipe]) -> dict[MealType, list[ScoredRecipe]]:
        pools: dict[MealType, list[ScoredRecipe]] = {}
        seen: dict[MealType, set[int]] = {}
        for recipe in liked_pool:
            meal_type = recipe.effective_meal_type
            if recipe.id in seen.setdefault(meal_type, set()):
                continue
            seen[meal_type].add(recipe.id)
            pools.setdefault(meal_type, []).append(recipe)
        return pools

    @staticmethod
    def _pick(pool, key, cursors, fits) -> ScoredRecipe | None:
        """First fitting candidate from the cursor onwards; advances the cursor past it."""
        if not pool:
            return None
        start = cursors.get(key, 0) % len(pool)
        for offset in range(len(pool)):
            index = (start + offset) % len(pool)
            if fits(pool[index]):
                cursors[key] = index + 1
                return pool[index]
        return None

    @staticmethod
    def _new_purchases(
        recipe: ScoredRecipe, already_bought: set[str], pantry_names: list[str]
    ) -> set[str]:
        return {
            name
            for name in recipe.purchase_names()
            if name not in already_bought and not matches(name, pantry_names)
        }

    def _fits(
        self,
        recipe: ScoredRecipe,
        plan: MealPlan,
        day: Weekday,
        prefs: StudentPreferences,
        goals: dict[str, float],
        pantry_names: list[str],
    ) -> bool:
        if prefs.max_buy_items is not None:
            new = self._new_purchases(recipe, plan.buy_items, pantry_names)
            if len(plan.buy_items) + len(new) > prefs.max_buy_items:
                logger.debug(f"{recipe.title}: {len(new)} new purchases exceed budget")
                return False

        if goals:
            totals = plan.daily_totals[day].plus(recipe.nutrition)
            for name, goal in goals.items():
                if getattr(totals, name) > goal * self.macro_tolerance:
                    logger.debug(f"{recipe.title}: {day} {name} would exceed goal")
                    return False

        return True


def assemble_plan(
    liked_pool: Sequence[ScoredRecipe],
    prefs: StudentPreferences,
    pantry: PantrySnapshot | None = None,
    macro_tolerance: float = 1.10,
) -> MealPlan:
    """Assemble a plan with the default assembler."""
    return MealPlanAssembler(macro_tolerance).assemble(liked_pool, prefs, pantry)
