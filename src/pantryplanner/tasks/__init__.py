"""Celery tasks for background job processing."""

from pantryplanner.tasks.cache import prune_recipe_cache_task, warm_recipe_cache_task

__all__ = [
    "prune_recipe_cache_task",
    "warm_recipe_cache_task",
]
