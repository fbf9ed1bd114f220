"""iCalendar export of an assembled meal plan."""

from datetime import date, timedelta

from pantryplanner.plan.assembler import MealPlan
from pantryplanner.recipes.scoring import round_half_up
from pantryplanner.schemas import WEEKDAYS, MealType, ScoredRecipe, Weekday

PRODID = "-//UC Davis Pantry//Meal Plan//EN"
CRLF = "\r\n"
MAX_DESCRIPTION_INGREDIENTS = 8

MEAL_EMOJI: dict[MealType, str] = {
    "breakfast": "🍳",
    "lunch": "🥗",
    "dinner": "🍽️",
    "unknown": "🍴",
}

MEAL_LABELS: dict[MealType, str] = {
    "breakfast": "Breakfast",
    "lunch": "Lunch",
    "dinner": "Dinner",
    "unknown": "Other",
}


def week_dates(today: date) -> dict[Weekday, date]:
    """Mon-Fri dates of the week containing ``today`` (Sunday belongs to the past week)."""
    monday = today - timedelta(days=today.weekday())
    return {day: monday + timedelta(days=i) for i, day in enumerate(WEEKDAYS)}


def escape_text(value: str) -> str:
    """Escape a TEXT property value."""
    return (
        value.replace("\\", "\\\\")
        .replace(";", "\\;")
        .replace(",", "\\,")
        .replace("\n", "\\n")
    )


def _description(recipe: ScoredRecipe, meal_type: MealType) -> str:
    parts = [MEAL_LABELS[meal_type]]
    if recipe.nutrition is not None and recipe.nutrition.calories:
        parts.append(f"{round_half_up(recipe.nutrition.calories)} cal")
    if recipe.ready_in_minutes:
        parts.append(f"{recipe.ready_in_minutes} min")
    names = [ing.name for ing in recipe.all_ingredients()][:MAX_DESCRIPTION_INGREDIENTS]
    if names:
        parts.append(f"Ingredients: {', '.join(names)}")
    return "\n".join(parts)


def _event(
    day: Weekday, meal_type: MealType, recipe: ScoredRecipe, on: date, base_url: str
) -> list[str]:
    stamp = on.strftime("%Y%m%d")
    url = recipe.source_url or f"{base_url.rstrip('/')}/recipe/{recipe.id}"
    return [
        "BEGIN:VEVENT",
        f"UID:mealplan-{day}-{meal_type}-{recipe.id}-{stamp}@ucdpantry",
        f"DTSTART;VALUE=DATE:{stamp}",
        f"DTEND;VALUE=DATE:{(on + timedelta(days=1)).strftime('%Y%m%d')}",
        f"SUMMARY:{escape_text(f'{MEAL_EMOJI[meal_type]} {recipe.title}')}",
        f"DESCRIPTION:{escape_text(_description(recipe, meal_type))}",
        f"URL:{url}",
        "END:VEVENT",
    ]


def export_ics(plan: MealPlan, week_start: date, base_url: str) -> str:
    """
    Render a plan as an iCalendar document.

    Args:
        plan: Assembled meal plan.
        week_start: Any date in the target week; events land on its Mon-Fri.
        base_url: Public site URL used when a recipe has no source URL.

    Returns:
        The calendar text with CRLF line endings, one all-day event per
        filled slot.
    """
    dates = week_dates(week_start)
    lines = [
        "BEGIN:VCALENDAR",
        "VERSION:2.0",
        f"PRODID:{PRODID}",
        "CALSCALE:GREGORIAN",
        "METHOD:PUBLISH",
    ]
    for slot in plan.filled_slots:
        lines.extend(_event(slot.day, slot.meal_type, slot.recipe, dates[slot.day], base_url))
    lines.append("END:VCALENDAR")
    return CRLF.join(lines) + CRLF
