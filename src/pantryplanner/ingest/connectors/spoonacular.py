"""Spoonacular API connector for ingredient-based recipe search."""

import asyncio
import time
from typing import Any

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from pantryplanner.config import get_settings
from pantryplanner.ingest.connectors.base import (
    ConfigurationError,
    ConnectorResponse,
    ProviderError,
    ProviderTimeoutError,
    RateLimitError,
    RecipeSearchConnector,
)
from pantryplanner.logging_config import get_logger
from pantryplanner.schemas import RecipeIngredient

logger = get_logger(__name__)


# Dietary restriction -> provider diet parameter. Empty means the provider
# has no matching filter and the restriction is only scored locally.
PROVIDER_DIETS = {
    "vegan": "vegan",
    "vegetarian": "vegetarian",
    "gluten-free": "gluten free",
    "dairy-free": "dairy free",
    "nut-free": "",
    "halal": "",
    "kosher": "",
}


def diet_for_restrictions(restrictions: list[str]) -> str | None:
    """Pick the first restriction the provider can filter on."""
    for restriction in restrictions:
        diet = PROVIDER_DIETS.get(restriction.lower())
        if diet:
            return diet
    return None


class _ProviderModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class ProviderRecipeSummary(_ProviderModel):
    """Recipe summary returned by findByIngredients."""

    id: int
    title: str = ""
    image: str | None = None
    used_ingredients: list[RecipeIngredient] = Field(default_factory=list, alias="usedIngredients")
    missed_ingredients: list[RecipeIngredient] = Field(
        default_factory=list, alias="missedIngredients"
    )
    used_count: int = Field(0, alias="usedIngredientCount")
    missed_count: int = Field(0, alias="missedIngredientCount")
    likes: int = 0

    @field_validator("used_ingredients", "missed_ingredients", mode="before")
    @classmethod
    def _coerce_lists(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator("title", mode="before")
    @classmethod
    def _coerce_title(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("used_count", "missed_count", "likes", mode="before")
    @classmethod
    def _coerce_counts(cls, value: Any) -> Any:
        return 0 if value is None else value


class ProviderNutrient(_ProviderModel):
    """One nutrient line of a detail record."""

    name: str = ""
    amount: float = 0.0
    unit: str = ""

    @field_validator("amount", mode="before")
    @classmethod
    def _coerce_amount(cls, value: Any) -> Any:
        return 0.0 if value is None else value


class ProviderNutrition(_ProviderModel):
    nutrients: list[ProviderNutrient] = Field(default_factory=list)

    @field_validator("nutrients", mode="before")
    @classmethod
    def _coerce_nutrients(cls, value: Any) -> Any:
        return [] if value is None else value


class ProviderRecipeDetail(_ProviderModel):
    """Full recipe record returned by informationBulk."""

    id: int
    title: str = ""
    image: str | None = None
    ready_in_minutes: int | None = Field(None, alias="readyInMinutes")
    servings: int | None = None
    instructions: str | None = None
    diets: list[str] = Field(default_factory=list)
    cuisines: list[str] = Field(default_factory=list)
    dish_types: list[str] = Field(default_factory=list, alias="dishTypes")
    source_url: str | None = Field(None, alias="sourceUrl")
    extended_ingredients: list[RecipeIngredient] = Field(
        default_factory=list, alias="extendedIngredients"
    )
    nutrition: ProviderNutrition | None = None

    @field_validator(
        "diets", "cuisines", "dish_types", "extended_ingredients", mode="before"
    )
    @classmethod
    def _coerce_lists(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator("title", mode="before")
    @classmethod
    def _coerce_title(cls, value: Any) -> Any:
        return "" if value is None else value

    def nutrient(self, name: str) -> float:
        """Amount of a nutrient by case-insensitive name, 0 when absent."""
        if self.nutrition is None:
            return 0.0
        wanted = name.lower()
        for nutrient in self.nutrition.nutrients:
            if nutrient.name.lower() == wanted:
                return nutrient.amount
        return 0.0


def _parse_items(model: type[BaseModel], payload: Any) -> list[Any]:
    """Validate a JSON list item by item, dropping records that cannot be coerced."""
    if not isinstance(payload, list):
        logger.warning(f"Expected a list from provider, got {type(payload).__name__}")
        return []

    items = []
    for raw in payload:
        try:
            items.append(model.model_validate(raw))
        except ValidationError as e:
            logger.warning(f"Dropping malformed provider record: {e.error_count()} errors")
    return items


class SpoonacularConnector(RecipeSearchConnector):
    """Connector for the Spoonacular recipe API."""

    DEFAULT_TIMEOUT = 25.0
    CONNECT_ATTEMPTS = 2
    BACKOFF_BASE = 0.5
    BACKOFF_MAX = 2
    REQUEST_DELAY = 0.1  # Small delay between requests to be polite

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        connect_attempts: int | None = None,
    ):
        settings = get_settings()
        self.api_key = api_key or settings.spoonacular_api_key
        if not self.api_key:
            raise ConfigurationError("Spoonacular API key not configured")
        self.base_url = (base_url or settings.spoonacular_base_url).rstrip("/")
        self.timeout = timeout or settings.provider_timeout or self.DEFAULT_TIMEOUT
        self.connect_attempts = (
            connect_attempts or settings.provider_connect_attempts or self.CONNECT_ATTEMPTS
        )
        self._client: httpx.AsyncClient | None = None
        self._last_request_time: float = 0

    @property
    def name(self) -> str:
        """Return connector name."""
        return "spoonacular"

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout),
                headers={
                    "Accept": "application/json",
                    "User-Agent": "PantryPlanner/1.0",
                },
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def _throttle(self) -> None:
        """Apply rate limiting between requests."""
        now = time.monotonic()
        elapsed = now - self._last_request_time
        if elapsed < self.REQUEST_DELAY:
            await asyncio.sleep(self.REQUEST_DELAY - elapsed)
        self._last_request_time = time.monotonic()

    async def _request(
        self,
        endpoint: str,
        params: dict[str, Any] | None = None,
    ) -> ConnectorResponse:
        """Make one provider round trip.

        Only connections that could not be opened are retried. A request that
        timed out or got an answer is reported to the caller as is.
        """
        await self._throttle()

        url = f"{self.base_url}/{endpoint}"
        client = await self._get_client()
        query = {"apiKey": self.api_key, **(params or {})}

        @retry(
            retry=retry_if_exception_type(httpx.ConnectError),
            stop=stop_after_attempt(self.connect_attempts),
            wait=wait_exponential(multiplier=self.BACKOFF_BASE, max=self.BACKOFF_MAX),
            reraise=True,
        )
        async def _do_request() -> httpx.Response:
            return await client.get(url, params=query)

        try:
            response = await _do_request()
        except httpx.TimeoutException as e:
            logger.error(f"Request to {endpoint} timed out after {self.timeout}s")
            raise ProviderTimeoutError(
                f"Recipe provider timed out after {self.timeout:.0f}s",
                response=str(e),
            ) from e
        except httpx.ConnectError as e:
            logger.error(f"Could not connect to provider after {self.connect_attempts} attempts")
            raise ProviderError("Recipe provider unreachable", response=str(e)) from e
        except httpx.HTTPError as e:
            logger.error(f"Transport error calling {endpoint}: {e}")
            raise ProviderError(f"Recipe provider request failed: {e}", response=str(e)) from e

        result = ConnectorResponse(
            data=None,
            status_code=response.status_code,
            headers=dict(response.headers),
        )

        if result.is_rate_limited:
            logger.warning(f"Provider rate limit hit on {endpoint}")
            raise RateLimitError("Recipe provider rate limit exceeded", result.retry_after)

        if not result.is_success:
            error_detail = response.text[:500] if response.text else "No details"
            logger.error(f"API error {response.status_code} for {endpoint}: {error_detail}")
            raise ProviderError(
                f"Recipe provider error {response.status_code}",
                status_code=response.status_code,
                response=error_detail,
                retryable=result.is_retryable,
            )

        try:
            result.data = response.json() if response.text else []
        except ValueError as e:
            logger.warning(f"Failed to parse JSON response: {e}")
            result.data = []

        if result.quota_left is not None:
            logger.debug(f"Provider quota left after {endpoint}: {result.quota_left:.1f} points")
        return result

    async def find_by_ingredients(
        self,
        ingredients: list[str],
        diet: str | None = None,
        count: int = 24,
    ) -> list[ProviderRecipeSummary]:
        """
        Search recipes by ingredient list.

        Args:
            ingredients: Ingredient names, already stripped of pantry staples.
            diet: Optional provider diet tag (e.g. "vegan", "gluten free").
            count: Maximum number of results.

        Returns:
            Recipe summaries ranked to minimise missing ingredients.
        """
        if not ingredients:
            return []

        params: dict[str, Any] = {
            "ingredients": ",".join(ingredients),
            "number": str(count),
            "ranking": "2",
            "ignorePantry": "true",
        }
        if diet:
            params["diet"] = diet

        logger.info(f"Searching provider for {len(ingredients)} ingredients (diet={diet})")
        response = await self._request("recipes/findByIngredients", params=params)

        recipes = _parse_items(ProviderRecipeSummary, response.data)
        logger.info(f"Provider returned {len(recipes)} recipes")
        return recipes

    async def information_bulk(self, ids: list[int]) -> list[ProviderRecipeDetail]:
        """
        Fetch detail records with nutrition for several recipes.

        Args:
            ids: Provider recipe ids.

        Returns:
            Parsed detail records.
        """
        if not ids:
            return []

        logger.info(f"Fetching provider details for {len(ids)} recipes")
        response = await self._request(
            "recipes/informationBulk",
            params={"ids": ",".join(str(i) for i in ids), "includeNutrition": "true"},
        )

        details = _parse_items(ProviderRecipeDetail, response.data)
        logger.debug(f"Parsed {len(details)} detail records")
        return details

    async def health_check(self) -> bool:
        """
        Check if the provider API is reachable.

        Returns:
            True if healthy, False otherwise.
        """
        try:
            response = await self._request(
                "recipes/findByIngredients", params={"ingredients": "rice", "number": "1"}
            )
            return response.is_success
        except ProviderError as e:
            logger.warning(f"Health check failed: {e}")
            return False

    async def __aenter__(self) -> "SpoonacularConnector":
        """Async context manager entry."""
        await self._get_client()
        return self

    async def __aexit__(self, *args: Any) -> None:
        """Async context manager exit."""
        await self.close()
