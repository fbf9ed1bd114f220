"""Base connector interface for recipe search providers."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from pantryplanner.ingest.connectors.spoonacular import (
        ProviderRecipeDetail,
        ProviderRecipeSummary,
    )


@dataclass
class ConnectorResponse:
    """Status, headers and decoded body of one provider round trip."""

    data: Any
    status_code: int
    headers: dict[str, str]

    def header(self, name: str) -> str | None:
        """Case-insensitive header lookup."""
        wanted = name.lower()
        return next((v for k, v in self.headers.items() if k.lower() == wanted), None)

    def _float_header(self, name: str) -> float | None:
        raw = self.header(name)
        if raw is None:
            return None
        try:
            return float(raw)
        except ValueError:
            return None

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300

    @property
    def is_rate_limited(self) -> bool:
        return self.status_code == 429

    @property
    def is_retryable(self) -> bool:
        """Whether the same request may succeed later (rate limits and server errors)."""
        return self.is_rate_limited or self.status_code >= 500

    @property
    def retry_after(self) -> int | None:
        """Seconds to wait before retrying, from the Retry-After header."""
        seconds = self._float_header("Retry-After")
        return int(seconds) if seconds is not None else None

    @property
    def quota_left(self) -> float | None:
        """Remaining daily API points reported by the provider."""
        return self._float_header("X-API-Quota-Left")


class ConfigurationError(Exception):
    """Raised when a connector is missing required configuration."""


class ProviderError(Exception):
    """Base exception for recipe provider failures.

    ``retryable`` tells the caller whether the same request may succeed later.
    Cached recipes stay valid whatever the outcome.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        response: Any = None,
        retryable: bool = True,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.response = response
        self.retryable = retryable


class ProviderTimeoutError(ProviderError):
    """Raised when a provider round trip exceeds its time budget."""


class RateLimitError(ProviderError):
    """Raised when the provider rate limit is exceeded."""

    def __init__(self, message: str, retry_after: int | None = None):
        super().__init__(message, status_code=429)
        self.retry_after = retry_after


class RecipeSearchConnector(ABC):
    """Abstract base class for ingredient-based recipe search providers."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Return connector name for logging and identification."""
        pass

    @abstractmethod
    async def find_by_ingredients(
        self,
        ingredients: list[str],
        diet: str | None = None,
        count: int = 24,
    ) -> list["ProviderRecipeSummary"]:
        """
        Find recipes that use the given ingredients.

        Args:
            ingredients: Ingredient names to match.
            diet: Optional provider diet tag.
            count: Maximum number of results.

        Returns:
            Recipe summaries with used/missed ingredient lists.
        """
        pass

    @abstractmethod
    async def information_bulk(self, ids: list[int]) -> list["ProviderRecipeDetail"]:
        """
        Fetch full detail records for several recipes.

        Args:
            ids: Provider recipe ids.

        Returns:
            Detail records including nutrition, dish types and diets.
        """
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """
        Check if the connector can reach its API.

        Returns:
            True if healthy, False otherwise.
        """
        pass
