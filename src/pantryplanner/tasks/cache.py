"""Celery tasks that keep the recipe cache warm and small."""

import asyncio
import concurrent.futures
from datetime import datetime, timedelta
from typing import Any

from pantryplanner.celery_app import celery_app
from pantryplanner.config import get_settings
from pantryplanner.ingest.connectors.base import ConfigurationError, ProviderError
from pantryplanner.logging_config import LoggingContext, configure_logging, get_logger

# Configure logging for Celery workers
configure_logging(get_settings().log_level)
logger = get_logger(__name__)


def run_async(coro: Any) -> Any:
    """Drive a coroutine to completion from a synchronous Celery task."""
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)

    # Already inside a loop (eagerly applied tasks), so run on a fresh one
    with concurrent.futures.ThreadPoolExecutor(max_workers=1) as executor:
        return executor.submit(asyncio.run, coro).result()


async def warm_recipe_cache(diet: str | None = None) -> dict[str, Any]:
    """
    Refresh the recipe cache for everything currently in stock.

    Args:
        diet: Optional provider diet tag.

    Returns:
        dict with the number of ingredients queried and recipes returned.
    """
    from pantryplanner.database import AsyncSessionLocal, async_engine
    from pantryplanner.ingest.connectors.spoonacular import SpoonacularConnector
    from pantryplanner.pantry.repository import PantryRepository
    from pantryplanner.recipes.cache import RecipeCacheGateway
    from pantryplanner.recipes.repository import RecipeCacheRepository

    settings = get_settings()
    try:
        async with AsyncSessionLocal() as session:
            snapshot = await PantryRepository(session).snapshot()
            names = snapshot.in_stock_names()
            if not names:
                return {"status": "skipped", "reason": "nothing in stock", "recipes": 0}

            async with SpoonacularConnector() as connector:
                gateway = RecipeCacheGateway(
                    RecipeCacheRepository(session),
                    connector,
                    max_age_days=settings.cache_max_age_days,
                    hit_threshold=settings.cache_hit_threshold,
                    timeout=settings.provider_timeout,
                )
                results = await gateway.refresh_from_provider(
                    names, diet=diet, count=settings.search_result_count
                )
    finally:
        # Connections are bound to this task's event loop
        await async_engine.dispose()

    return {"status": "completed", "ingredients": len(names), "recipes": len(results)}


async def prune_recipe_cache(max_age_days: int | None = None) -> dict[str, Any]:
    """Delete cache rows older than the freshness window."""
    from pantryplanner.database import AsyncSessionLocal, async_engine
    from pantryplanner.recipes.repository import RecipeCacheRepository

    days = max_age_days if max_age_days is not None else get_settings().cache_max_age_days
    cutoff = datetime.utcnow() - timedelta(days=days)
    try:
        async with AsyncSessionLocal() as session:
            deleted = await RecipeCacheRepository(session).delete_stale(cutoff)
    finally:
        await async_engine.dispose()

    return {"status": "completed", "deleted": deleted, "cutoff": cutoff.isoformat()}


@celery_app.task(
    bind=True,
    name="pantryplanner.tasks.cache.warm_recipe_cache_task",
    max_retries=3,
    default_retry_delay=300,  # 5 minutes
    acks_late=True,
    reject_on_worker_lost=True,
)
def warm_recipe_cache_task(self, diet: str | None = None) -> dict[str, Any]:
    """
    Celery task to pre-fetch recipes for the current pantry stock.

    Scheduled daily by Celery Beat. Retryable provider failures are retried;
    a missing API key or a rejected request is reported without retrying.
    """
    task_id = self.request.id

    with LoggingContext(task_id=task_id):
        logger.info(f"Starting recipe cache warm task {task_id} (diet={diet})")

        try:
            result = run_async(warm_recipe_cache(diet=diet))
        except ConfigurationError as e:
            logger.warning(f"Cache warm skipped: {e}")
            return {"status": "skipped", "reason": str(e), "recipes": 0}
        except ProviderError as e:
            if e.retryable:
                logger.warning(f"Provider unavailable, retrying cache warm: {e}")
                raise self.retry(exc=e)
            logger.error(f"Provider rejected cache warm request: {e}")
            return {"status": "failed", "reason": str(e), "recipes": 0}

        logger.info(f"Cache warm task {task_id} finished: {result}")
        return result


@celery_app.task(
    name="pantryplanner.tasks.cache.prune_recipe_cache_task",
    acks_late=True,
)
def prune_recipe_cache_task(max_age_days: int | None = None) -> dict[str, Any]:
    """
    Delete recipe cache rows that fell out of the freshness window.

    Args:
        max_age_days: Override for the configured freshness window.

    Returns:
        dict with the number of rows deleted.
    """
    logger.info("Starting recipe cache prune")

    try:
        result = run_async(prune_recipe_cache(max_age_days))
    except Exception as e:
        logger.exception(f"Cache prune failed: {e}")
        raise

    logger.info(f"Pruned {result['deleted']} stale cached recipes")
    return result
