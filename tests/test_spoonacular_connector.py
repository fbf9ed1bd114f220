"""Tests for the Spoonacular recipe search connector."""

from unittest.mock import AsyncMock, patch

import httpx
import pytest

from pantryplanner.config import Settings
from pantryplanner.ingest.connectors.base import (
    ConfigurationError,
    ConnectorResponse,
    ProviderError,
    ProviderTimeoutError,
    RateLimitError,
)
from pantryplanner.ingest.connectors.spoonacular import (
    ProviderRecipeDetail,
    ProviderRecipeSummary,
    SpoonacularConnector,
    diet_for_restrictions,
)


class TestProviderModels:
    """Tests for coercing provider JSON into typed records."""

    def test_parse_summary(self, mock_find_by_ingredients_response):
        summary = ProviderRecipeSummary.model_validate(mock_find_by_ingredients_response[0])

        assert summary.id == 715415
        assert summary.used_count == 2
        assert summary.missed_count == 1
        assert [i.name for i in summary.used_ingredients] == ["black beans", "rice"]
        assert summary.missed_ingredients[0].original == "1 lime"
        assert summary.likes == 12

    def test_parse_summary_with_nulls(self, mock_find_by_ingredients_response):
        """Test that null counts and ingredient fields are defaulted."""
        summary = ProviderRecipeSummary.model_validate(mock_find_by_ingredients_response[1])

        assert summary.image is None
        assert summary.likes == 0
        cheddar = summary.missed_ingredients[1]
        assert cheddar.amount == 0.0
        assert cheddar.unit == ""
        assert cheddar.original == ""

    def test_parse_detail(self, mock_information_bulk_response):
        detail = ProviderRecipeDetail.model_validate(mock_information_bulk_response[0])

        assert detail.ready_in_minutes == 25
        assert detail.dish_types == ["lunch", "main course"]
        assert detail.source_url == "https://example.com/bean-bowl"
        assert len(detail.extended_ingredients) == 4

    def test_nutrient_lookup_is_case_insensitive(self, mock_information_bulk_response):
        detail = ProviderRecipeDetail.model_validate(mock_information_bulk_response[0])

        assert detail.nutrient("calories") == 512.4
        assert detail.nutrient("PROTEIN") == 21.5
        assert detail.nutrient("Fiber") == 0.0

    def test_detail_without_nutrition(self, mock_information_bulk_response):
        detail = ProviderRecipeDetail.model_validate(mock_information_bulk_response[1])

        assert detail.nutrient("Calories") == 0.0
        assert detail.diets == []
        assert detail.extended_ingredients == []


class TestDietForRestrictions:
    def test_first_supported_restriction(self):
        assert diet_for_restrictions(["halal", "Gluten-Free", "vegan"]) == "gluten free"

    def test_unsupported_only(self):
        assert diet_for_restrictions(["halal", "nut-free"]) is None
        assert diet_for_restrictions([]) is None


class TestSpoonacularConnector:
    """Tests for SpoonacularConnector API calls."""

    @pytest.fixture
    def connector(self):
        """Create a connector instance without throttling or backoff."""
        connector = SpoonacularConnector(
            api_key="test-key", base_url="https://api.example.com", connect_attempts=2
        )
        connector.REQUEST_DELAY = 0
        connector.BACKOFF_BASE = 0
        return connector

    def test_missing_api_key(self):
        with patch(
            "pantryplanner.ingest.connectors.spoonacular.get_settings",
            return_value=Settings(spoonacular_api_key=""),
        ):
            with pytest.raises(ConfigurationError):
                SpoonacularConnector()

    @pytest.mark.asyncio
    async def test_find_by_ingredients(self, connector, mock_find_by_ingredients_response):
        """Test searching recipes by ingredients."""
        with patch.object(connector, "_request", new_callable=AsyncMock) as mock_request:
            mock_request.return_value = ConnectorResponse(
                data=mock_find_by_ingredients_response,
                status_code=200,
                headers={},
            )

            recipes = await connector.find_by_ingredients(["black beans", "rice"], diet="vegan")

            assert [r.id for r in recipes] == [715415, 642539]
            mock_request.assert_called_once_with(
                "recipes/findByIngredients",
                params={
                    "ingredients": "black beans,rice",
                    "number": "24",
                    "ranking": "2",
                    "ignorePantry": "true",
                    "diet": "vegan",
                },
            )

    @pytest.mark.asyncio
    async def test_find_by_ingredients_empty(self, connector):
        with patch.object(connector, "_request", new_callable=AsyncMock) as mock_request:
            assert await connector.find_by_ingredients([]) == []
            mock_request.assert_not_called()

    @pytest.mark.asyncio
    async def test_malformed_records_dropped(self, connector, mock_find_by_ingredients_response):
        """Test that records that fail validation are skipped."""
        with patch.object(connector, "_request", new_callable=AsyncMock) as mock_request:
            mock_request.return_value = ConnectorResponse(
                data=[{"title": "No id"}, mock_find_by_ingredients_response[0]],
                status_code=200,
                headers={},
            )

            recipes = await connector.find_by_ingredients(["rice"])

            assert [r.id for r in recipes] == [715415]

    @pytest.mark.asyncio
    async def test_non_list_payload(self, connector):
        with patch.object(connector, "_request", new_callable=AsyncMock) as mock_request:
            mock_request.return_value = ConnectorResponse(
                data={"status": "failure"}, status_code=200, headers={}
            )
            assert await connector.find_by_ingredients(["rice"]) == []

    @pytest.mark.asyncio
    async def test_information_bulk(self, connector, mock_information_bulk_response):
        with patch.object(connector, "_request", new_callable=AsyncMock) as mock_request:
            mock_request.return_value = ConnectorResponse(
                data=mock_information_bulk_response,
                status_code=200,
                headers={},
            )

            details = await connector.information_bulk([715415, 642539])

            assert [d.id for d in details] == [715415, 642539]
            mock_request.assert_called_once_with(
                "recipes/informationBulk",
                params={"ids": "715415,642539", "includeNutrition": "true"},
            )

    @pytest.mark.asyncio
    async def test_health_check_failure(self, connector):
        with patch.object(connector, "_request", new_callable=AsyncMock) as mock_request:
            mock_request.side_effect = ProviderError("down")
            assert await connector.health_check() is False

    @pytest.mark.asyncio
    async def test_connector_context_manager(self, connector):
        with patch.object(connector, "_get_client", new_callable=AsyncMock):
            with patch.object(connector, "close", new_callable=AsyncMock) as mock_close:
                async with connector as conn:
                    assert conn is connector
                mock_close.assert_called_once()


class TestRequestErrors:
    """Tests for mapping transport and HTTP failures to provider errors."""

    @pytest.fixture
    def make_connector(self):
        def _make(handler):
            connector = SpoonacularConnector(
                api_key="test-key", base_url="https://api.example.com", connect_attempts=2
            )
            connector.REQUEST_DELAY = 0
            connector.BACKOFF_BASE = 0
            connector._client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
            return connector

        return _make

    @pytest.mark.asyncio
    async def test_api_key_sent_as_query_param(self, make_connector):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json=[])

        connector = make_connector(handler)
        await connector.find_by_ingredients(["rice"])

        assert seen[0].url.params["apiKey"] == "test-key"
        assert seen[0].url.path == "/recipes/findByIngredients"

    @pytest.mark.asyncio
    async def test_rate_limited(self, make_connector):
        connector = make_connector(lambda request: httpx.Response(429, headers={"Retry-After": "30"}))

        with pytest.raises(RateLimitError) as exc_info:
            await connector.find_by_ingredients(["rice"])

        assert exc_info.value.retry_after == 30
        assert exc_info.value.retryable

    @pytest.mark.asyncio
    async def test_server_error_is_retryable(self, make_connector):
        connector = make_connector(lambda request: httpx.Response(503, text="maintenance"))

        with pytest.raises(ProviderError) as exc_info:
            await connector.find_by_ingredients(["rice"])

        assert exc_info.value.status_code == 503
        assert exc_info.value.retryable

    @pytest.mark.asyncio
    async def test_client_error_is_not_retryable(self, make_connector):
        connector = make_connector(lambda request: httpx.Response(402, text="quota"))

        with pytest.raises(ProviderError) as exc_info:
            await connector.information_bulk([1])

        assert exc_info.value.status_code == 402
        assert not exc_info.value.retryable

    @pytest.mark.asyncio
    async def test_timeout_not_retried(self, make_connector):
        calls = []

        def handler(request):
            calls.append(request)
            raise httpx.ReadTimeout("timed out", request=request)

        connector = make_connector(handler)

        with pytest.raises(ProviderTimeoutError):
            await connector.find_by_ingredients(["rice"])
        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_connect_error_retried_then_reported(self, make_connector):
        calls = []

        def handler(request):
            calls.append(request)
            raise httpx.ConnectError("refused", request=request)

        connector = make_connector(handler)

        with pytest.raises(ProviderError, match="unreachable"):
            await connector.find_by_ingredients(["rice"])
        assert len(calls) == 2

    @pytest.mark.asyncio
    async def test_invalid_json_yields_empty(self, make_connector):
        connector = make_connector(lambda request: httpx.Response(200, text="<html>"))
        assert await connector.find_by_ingredients(["rice"]) == []


class TestConnectorResponse:
    """Tests for response header helpers."""

    def test_headers_are_case_insensitive(self):
        response = ConnectorResponse(
            data=[], status_code=200, headers={"x-api-quota-left": "148.5", "retry-after": "12"}
        )

        assert response.quota_left == 148.5
        assert response.retry_after == 12

    def test_unparseable_headers(self):
        response = ConnectorResponse(data=[], status_code=429, headers={"Retry-After": "soon"})

        assert response.retry_after is None
        assert response.quota_left is None

    def test_retryable_statuses(self):
        assert ConnectorResponse(None, 429, {}).is_retryable
        assert ConnectorResponse(None, 503, {}).is_retryable
        assert not ConnectorResponse(None, 402, {}).is_retryable
        assert ConnectorResponse(None, 200, {}).is_success
