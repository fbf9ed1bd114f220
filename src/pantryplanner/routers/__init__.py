"""API routers for the pantryplanner application."""

from pantryplanner.routers.interactions import router as interactions_router
from pantryplanner.routers.meal_plans import router as meal_plans_router
from pantryplanner.routers.recipes import router as recipes_router
from pantryplanner.routers.swipe import router as swipe_router

__all__ = [
    "interactions_router",
    "meal_plans_router",
    "recipes_router",
    "swipe_router",
]
