"""Swipe sessions, meal-plan assembly and plan exports."""

from pantryplanner.plan.assembler import (
    MealPlan,
    MealPlanAssembler,
    MealSlot,
    SlotState,
    assemble_plan,
)
from pantryplanner.plan.calendar import export_ics, week_dates
from pantryplanner.plan.grocery_list import (
    build_grocery_list,
    build_grocery_list_from_snapshot,
    format_grocery_text,
)
from pantryplanner.plan.swipe import SwipeSession, build_sessions, collect_liked

__all__ = [
    "MealPlan",
    "MealPlanAssembler",
    "MealSlot",
    "SlotState",
    "SwipeSession",
    "assemble_plan",
    "build_grocery_list",
    "build_grocery_list_from_snapshot",
    "build_sessions",
    "collect_liked",
    "export_ics",
    "format_grocery_text",
    "week_dates",
]
