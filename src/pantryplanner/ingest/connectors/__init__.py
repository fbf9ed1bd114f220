"""Connector interfaces for recipe search providers."""

from pantryplanner.ingest.connectors.base import (
    ConfigurationError,
    ConnectorResponse,
    ProviderError,
    ProviderTimeoutError,
    RateLimitError,
    RecipeSearchConnector,
)
from pantryplanner.ingest.connectors.spoonacular import (
    ProviderRecipeDetail,
    ProviderRecipeSummary,
    SpoonacularConnector,
    diet_for_restrictions,
)

__all__ = [
    "ConfigurationError",
    "ConnectorResponse",
    "ProviderError",
    "ProviderRecipeDetail",
    "ProviderRecipeSummary",
    "ProviderTimeoutError",
    "RateLimitError",
    "RecipeSearchConnector",
    "SpoonacularConnector",
    "diet_for_restrictions",
]
