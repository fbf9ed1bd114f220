"""Tests for the recipe cache Celery tasks."""

from unittest.mock import AsyncMock, patch

from pantryplanner.ingest.connectors.base import ConfigurationError, ProviderError
from pantryplanner.tasks.cache import prune_recipe_cache_task, warm_recipe_cache_task


class TestWarmRecipeCacheTask:
    """Tests for outcome reporting of the cache warm task."""

    def test_completed(self):
        expected = {"status": "completed", "ingredients": 3, "recipes": 12}
        with patch(
            "pantryplanner.tasks.cache.warm_recipe_cache",
            new_callable=AsyncMock,
            return_value=expected,
        ) as mock_warm:
            result = warm_recipe_cache_task.apply(kwargs={"diet": "vegan"}).get()

        assert result == expected
        mock_warm.assert_awaited_once_with(diet="vegan")

    def test_missing_key_skips(self):
        with patch(
            "pantryplanner.tasks.cache.warm_recipe_cache",
            new_callable=AsyncMock,
            side_effect=ConfigurationError("Spoonacular API key not configured"),
        ):
            result = warm_recipe_cache_task.apply().get()

        assert result["status"] == "skipped"
        assert result["recipes"] == 0

    def test_rejected_request_not_retried(self):
        error = ProviderError("bad request", status_code=400, retryable=False)
        with patch(
            "pantryplanner.tasks.cache.warm_recipe_cache",
            new_callable=AsyncMock,
            side_effect=error,
        ):
            result = warm_recipe_cache_task.apply().get()

        assert result == {"status": "failed", "reason": "bad request", "recipes": 0}


def test_prune_task_passes_window():
    expected = {"status": "completed", "deleted": 4, "cutoff": "2026-02-23T00:00:00"}
    with patch(
        "pantryplanner.tasks.cache.prune_recipe_cache",
        new_callable=AsyncMock,
        return_value=expected,
    ) as mock_prune:
        result = prune_recipe_cache_task.apply(args=(14,)).get()

    assert result == expected
    mock_prune.assert_awaited_once_with(14)
