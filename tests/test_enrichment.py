"""Tests for recipe enrichment and the budget filter."""

from datetime import date, datetime

import pytest

from pantryplanner.ingest.connectors.spoonacular import ProviderRecipeSummary
from pantryplanner.recipes.enrichment import (
    RecipeEnricher,
    apply_budget_filter,
    compute_buy_count,
)
from pantryplanner.schemas import CachedRecipeRecord, RecipeIngredient, RecipeNutrition


def _cached(provider_id, names, meal_type="dinner", **fields):
    return CachedRecipeRecord(
        provider_id=provider_id,
        title=f"Cached {provider_id}",
        ingredient_names=[n.lower() for n in names],
        ingredients=[RecipeIngredient(name=n, amount=1, unit="cup") for n in names],
        meal_type=meal_type,
        last_fetched_at=datetime(2026, 3, 1),
        **fields,
    )


class TestRecipeEnricher:
    """Tests for joining provider results with cache and shipment data."""

    @pytest.fixture
    def summaries(self, mock_find_by_ingredients_response):
        return [ProviderRecipeSummary.model_validate(r) for r in mock_find_by_ingredients_response]

    def test_upcoming_ingredients_from_shipments_and_inventory(self, pantry_snapshot, summaries):
        enricher = RecipeEnricher(pantry_snapshot)

        bowl = enricher.enrich(summaries[0])
        tacos = enricher.enrich(summaries[1])

        assert [(u.name, u.available_date) for u in bowl.upcoming_ingredients] == [
            ("lime", date(2026, 3, 4))
        ]
        assert [(u.name, u.available_date) for u in tacos.upcoming_ingredients] == [
            ("tortillas", date(2026, 3, 5)),
            ("cheddar", date(2026, 3, 3)),
        ]

    def test_without_cache_row_optional_fields_missing(self, summaries):
        recipe = RecipeEnricher().enrich(summaries[0])

        assert recipe.nutrition is None
        assert recipe.dietary_tags is None
        assert recipe.meal_type is None
        assert recipe.effective_meal_type == "unknown"
        assert recipe.upcoming_ingredients == []

    def test_cache_fields_merged(self, summaries):
        cached = _cached(
            715415,
            ["black beans", "rice", "lime"],
            meal_type="lunch",
            nutrition=RecipeNutrition(calories=500, protein=20),
            dietary_tags=["vegan"],
            cuisines=["Mexican"],
            ready_in_minutes=25,
            source_url="https://example.com/bowl",
        )

        recipe = RecipeEnricher().enrich(summaries[0], cached)

        assert recipe.title == "Black Bean and Rice Bowl"
        assert recipe.used_count == 2
        assert recipe.meal_type == "lunch"
        assert recipe.nutrition.calories == 500
        assert recipe.dietary_tags == ["vegan"]
        assert recipe.ready_in_minutes == 25

    def test_enrich_all_matches_cache_by_id(self, summaries):
        cached = {642539: _cached(642539, ["black beans"], meal_type="lunch")}

        recipes = RecipeEnricher().enrich_all(summaries, cached)

        assert [r.meal_type for r in recipes] == [None, "lunch"]

    def test_from_cache_splits_used_and_missed(self, pantry_snapshot):
        rows = [
            _cached(1, ["Rice", "lime", "cilantro"]),
            _cached(2, ["black beans", "rice", "onion"]),
            _cached(3, ["pasta", "basil"]),
        ]

        recipes = RecipeEnricher(pantry_snapshot).from_cache(rows, ["black beans", "Rice"], limit=2)

        assert [r.id for r in recipes] == [2, 1]
        assert [i.name for i in recipes[0].used_ingredients] == ["black beans", "rice"]
        assert recipes[1].used_count == 1
        assert recipes[1].missed_count == 2
        assert [u.name for u in recipes[1].upcoming_ingredients] == ["lime"]

    def test_from_cache_stable_for_equal_used_counts(self):
        rows = [_cached(10, ["rice", "a"]), _cached(11, ["rice", "b"])]

        recipes = RecipeEnricher().from_cache(rows, ["rice"])

        assert [r.id for r in recipes] == [10, 11]


class TestBudgetFilter:
    """Tests for the buy-count budget filter."""

    def test_buy_count_excludes_upcoming(self, make_recipe):
        recipe = make_recipe(
            1, missed=["lime", "cilantro"], upcoming=[("Lime", date(2026, 3, 4))]
        )
        assert compute_buy_count(recipe) == 1

    def test_none_is_no_op(self, make_recipe):
        recipes = [make_recipe(1, missed=["a", "b", "c"])]
        assert apply_budget_filter(recipes, None) == recipes

    def test_zero_keeps_pantry_only(self, make_recipe):
        """Pantry has black beans and rice; only the recipe needing nothing else survives."""
        pantry_only = make_recipe(1, used=["black beans", "rice"])
        needs_lime = make_recipe(2, used=["black beans", "rice"], missed=["lime"])

        kept = apply_budget_filter([pantry_only, needs_lime], 0)

        assert [r.id for r in kept] == [1]
        assert all(compute_buy_count(r) == 0 for r in kept)

    def test_cap_keeps_order(self, make_recipe):
        recipes = [
            make_recipe(1, missed=["a", "b"]),
            make_recipe(2, missed=["a", "b", "c"]),
            make_recipe(3, missed=["a"]),
        ]
        assert [r.id for r in apply_budget_filter(recipes, 2)] == [1, 3]
