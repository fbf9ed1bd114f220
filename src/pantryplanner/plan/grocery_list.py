"""Grocery list aggregation for an assembled meal plan."""

from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import date

from pantryplanner.logging_config import get_logger
from pantryplanner.pantry import PantrySnapshot, find_match, matches
from pantryplanner.plan.assembler import MealPlan
from pantryplanner.schemas import (
    GroceryItem,
    GroceryStatus,
    InventoryEntry,
    MealType,
    ShipmentEntry,
)

logger = get_logger(__name__)

STATUS_ORDER: dict[GroceryStatus, int] = {"need-to-buy": 0, "arriving-soon": 1, "in-stock": 2}


@dataclass
class _Aggregate:
    amount: float
    unit: str
    meal_types: list[MealType] = field(default_factory=list)

    def add_meal_type(self, meal_type: MealType) -> None:
        if meal_type not in self.meal_types:
            self.meal_types.append(meal_type)


def aggregate_plan_ingredients(plan: MealPlan) -> dict[str, _Aggregate]:
    """
    Sum ingredient amounts over the distinct recipes in a plan.

    A recipe placed in several slots contributes its amounts once; the
    extra slots only add their meal type to its ingredients.
    """
    totals: dict[str, _Aggregate] = {}
    recipe_keys: dict[int, list[str]] = {}

    for slot in plan.filled_slots:
        recipe = slot.recipe
        if recipe.id in recipe_keys:
            for key in recipe_keys[recipe.id]:
                totals[key].add_meal_type(slot.meal_type)
            continue

        keys = []
        for ingredient in recipe.all_ingredients():
            key = ingredient.key
            if not key:
                continue
            if key in totals:
                totals[key].amount += ingredient.amount
            else:
                totals[key] = _Aggregate(amount=ingredient.amount, unit=ingredient.unit)
            totals[key].add_meal_type(slot.meal_type)
            keys.append(key)
        recipe_keys[recipe.id] = keys

    return totals


def build_grocery_list(
    plan: MealPlan,
    inventory: Sequence[InventoryEntry],
    shipments: Sequence[ShipmentEntry],
    today: date | None = None,
) -> list[GroceryItem]:
    """
    Build the grocery list for a plan.

    Args:
        plan: Assembled meal plan.
        inventory: All pantry inventory rows, current and future-dated.
        shipments: Expected shipments.
        today: Day that separates current stock from upcoming supply.

    Returns:
        Items ordered need-to-buy, arriving-soon, in-stock.
    """
    pantry = PantrySnapshot.from_entries(list(inventory), list(shipments), today or date.today())
    return build_grocery_list_from_snapshot(plan, pantry)


def build_grocery_list_from_snapshot(plan: MealPlan, pantry: PantrySnapshot) -> list[GroceryItem]:
    """Build the grocery list against an already split pantry snapshot."""
    in_stock = pantry.in_stock_names()
    upcoming = pantry.upcoming_dates()

    items = []
    for name, aggregate in aggregate_plan_ingredients(plan).items():
        status: GroceryStatus = "need-to-buy"
        available_date = None
        if matches(name, in_stock):
            status = "in-stock"
        else:
            match = find_match(name, upcoming)
            if match is not None:
                status = "arriving-soon"
                available_date = match[1]

        items.append(
            GroceryItem(
                name=name,
                amount=aggregate.amount,
                unit=aggregate.unit,
                status=status,
                available_date=available_date,
                meal_types=aggregate.meal_types,
            )
        )

    items.sort(key=lambda item: STATUS_ORDER[item.status])
    logger.info(
        f"Grocery list: {len(items)} items, "
        f"{sum(1 for i in items if i.status == 'need-to-buy')} to buy"
    )
    return items


def format_grocery_text(items: Sequence[GroceryItem]) -> str:
    """Render a grocery list as plain text for copying."""
    need = [i for i in items if i.status == "need-to-buy"]
    arriving = [i for i in items if i.status == "arriving-soon"]
    in_stock = [i for i in items if i.status == "in-stock"]

    lines = ["=== GROCERY LIST ===", ""]
    if need:
        lines.append("NEED TO BUY:")
        for item in need:
            amount = f"{round(item.amount)} {item.unit}".strip()
            lines.append(f"  [ ] {item.name} - {amount} ({', '.join(item.meal_types)})")
        lines.append("")
    if arriving:
        lines.append("ARRIVING SOON:")
        for item in arriving:
            lines.append(f"  ~ {item.name} - arriving {item.available_date}")
        lines.append("")
    if in_stock:
        lines.append("IN STOCK AT PANTRY:")
        for item in in_stock:
            lines.append(f"  ✓ {item.name}")
    return "\n".join(lines).rstrip("\n") + "\n"
