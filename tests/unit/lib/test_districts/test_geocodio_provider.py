"""Unit tests for the Geocodio district provider and response parsing."""

from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any
from unittest.mock import AsyncMock, patch

import httpx
import pytest

from district_lookup.lib.districts.base import (
    DistrictNetworkError,
    InvalidApiKeyError,
    ProviderRateLimitedError,
    ProviderResponseError,
    ProviderTimeoutError,
)
from district_lookup.lib.districts.geocodio import (
    UNKNOWN_CITY,
    GeocodioDistrictProvider,
    parse_district_result,
    parse_retry_after,
    select_best_result,
)
from district_lookup.schemas.district import (
    DistrictCategory,
    DistrictSource,
    MultiDistrictMapping,
    SingleDistrictMapping,
)


def _provider(handler: Callable[[httpx.Request], httpx.Response]) -> GeocodioDistrictProvider:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return GeocodioDistrictProvider(api_key="test-key", base_url="https://geocodio.test/v1.7", client=client)


class TestGeocodioFetch:
    """Tests for GeocodioDistrictProvider HTTP handling."""

    async def test_successful_lookup(self, geocodio_result: Callable[..., dict[str, Any]]) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"results": [geocodio_result()]})

        results = await _provider(handler).fetch("90210")

        assert len(results) == 1
        request = seen[0]
        assert request.url.path == "/v1.7/geocode"
        assert request.url.params["postal_code"] == "90210"
        assert request.url.params["state"] == "CA"
        assert request.url.params["fields"] == "cd,stateleg"
        assert request.headers["Authorization"] == "Bearer test-key"

    async def test_empty_results(self) -> None:
        provider = _provider(lambda _r: httpx.Response(200, json={"results": []}))
        assert await provider.fetch("90210") == []

    async def test_rate_limited_with_retry_after(self) -> None:
        provider = _provider(lambda _r: httpx.Response(429, headers={"Retry-After": "7"}))
        with pytest.raises(ProviderRateLimitedError) as exc_info:
            await provider.fetch("90210")
        assert exc_info.value.retry_after == 7.0

    @pytest.mark.parametrize("status", [401, 403])
    async def test_rejected_credentials(self, status: int) -> None:
        provider = _provider(lambda _r: httpx.Response(status, json={"error": "Invalid API key"}))
        with pytest.raises(InvalidApiKeyError):
            await provider.fetch("90210")

    async def test_server_error_is_retryable(self) -> None:
        provider = _provider(lambda _r: httpx.Response(503, json={"error": "Service unavailable"}))
        with pytest.raises(DistrictNetworkError, match="Service unavailable") as exc_info:
            await provider.fetch("90210")
        assert exc_info.value.retryable
        assert exc_info.value.status_code == 503

    async def test_client_error_is_not_retryable(self) -> None:
        provider = _provider(lambda _r: httpx.Response(422, text="nope"))
        with pytest.raises(DistrictNetworkError) as exc_info:
            await provider.fetch("90210")
        assert not exc_info.value.retryable

    async def test_non_json_body(self) -> None:
        provider = _provider(lambda _r: httpx.Response(200, text="<html>"))
        with pytest.raises(ProviderResponseError):
            await provider.fetch("90210")

    async def test_missing_results_list(self) -> None:
        provider = _provider(lambda _r: httpx.Response(200, json={"results": "nope"}))
        with pytest.raises(ProviderResponseError):
            await provider.fetch("90210")

    async def test_timeout_raises_timeout_error(self) -> None:
        provider = GeocodioDistrictProvider(api_key="test-key", timeout=0.1)
        with (
            patch("httpx.AsyncClient.get", new_callable=AsyncMock) as mock_get,
            pytest.raises(ProviderTimeoutError),
        ):
            mock_get.side_effect = httpx.TimeoutException("Connection timed out")
            await provider.fetch("90210")

    async def test_connection_error_raises_network_error(self) -> None:
        provider = GeocodioDistrictProvider(api_key="test-key")
        with (
            patch("httpx.AsyncClient.get", new_callable=AsyncMock) as mock_get,
            pytest.raises(DistrictNetworkError, match="Request failed"),
        ):
            mock_get.side_effect = httpx.ConnectError("Connection refused")
            await provider.fetch("90210")

    async def test_missing_key_makes_no_request(self) -> None:
        provider = GeocodioDistrictProvider(api_key=None)
        assert not provider.is_configured
        with (
            patch("httpx.AsyncClient.get", new_callable=AsyncMock) as mock_get,
            pytest.raises(InvalidApiKeyError),
        ):
            await provider.fetch("90210")
        mock_get.assert_not_called()


class TestParseRetryAfter:
    def test_delta_seconds(self) -> None:
        assert parse_retry_after("120") == 120.0

    def test_http_date_in_past(self) -> None:
        assert parse_retry_after("Wed, 21 Oct 2015 07:28:00 GMT") == 0.0

    @pytest.mark.parametrize("value", [None, "", "soon"])
    def test_unparseable(self, value: str | None) -> None:
        assert parse_retry_after(value) is None


class TestParseDistrictResult:
    """Tests for building mappings from Geocodio results."""

    NOW = datetime(2025, 1, 15, tzinfo=UTC)

    def test_single_district(self, geocodio_result: Callable[..., dict[str, Any]]) -> None:
        mapping = parse_district_result(geocodio_result(), "90210", now=self.NOW)
        assert isinstance(mapping, SingleDistrictMapping)
        assert mapping.congressional_district == 30
        assert mapping.state_senate_district == 24
        assert mapping.state_assembly_district == 51
        assert mapping.coordinates == (-118.4065, 34.0901)
        assert mapping.source == DistrictSource.PROVIDER
        assert mapping.county == "Los Angeles County"
        assert mapping.last_updated == self.NOW

    def test_multi_district_dedupes_in_order(self, geocodio_result: Callable[..., dict[str, Any]]) -> None:
        result = geocodio_result(congressional=(32, 30, 32), assembly=(51, 50))
        mapping = parse_district_result(result, "90210")
        assert isinstance(mapping, MultiDistrictMapping)
        assert mapping.districts.congressional == (32, 30)
        assert mapping.district_numbers(DistrictCategory.STATE_ASSEMBLY) == (51, 50)
        assert mapping.primary().congressional == 32

    def test_multi_collapsed_when_disallowed(self, geocodio_result: Callable[..., dict[str, Any]]) -> None:
        result = geocodio_result(congressional=(32, 30))
        mapping = parse_district_result(result, "90210", allow_multi_district=False)
        assert isinstance(mapping, SingleDistrictMapping)
        assert mapping.congressional_district == 32

    def test_filters_to_current_congress(self, geocodio_result: Callable[..., dict[str, Any]]) -> None:
        result = geocodio_result()
        result["fields"]["congressional_districts"] = [
            {"district_number": 33, "congress_numbers": [117, 118]},
            {"district_number": 30, "congress_numbers": [119]},
        ]
        mapping = parse_district_result(result, "90210")
        assert isinstance(mapping, SingleDistrictMapping)
        assert mapping.congressional_district == 30

    def test_missing_category_recorded_as_zero(self, geocodio_result: Callable[..., dict[str, Any]]) -> None:
        mapping = parse_district_result(geocodio_result(senate=()), "90210")
        assert isinstance(mapping, SingleDistrictMapping)
        assert mapping.state_senate_district == 0

    def test_accuracy_clamped_and_defaulted(self, geocodio_result: Callable[..., dict[str, Any]]) -> None:
        assert parse_district_result(geocodio_result(accuracy=1.7), "90210").accuracy == 1.0
        assert parse_district_result(geocodio_result(accuracy=None), "90210").accuracy == 0.5

    def test_county_falls_back_to_address_components(self, geocodio_result: Callable[..., dict[str, Any]]) -> None:
        result = geocodio_result(county="Orange County")
        del result["fields"]["county"]
        assert parse_district_result(result, "92602").county == "Orange County"

    def test_missing_city_uses_placeholder(self, geocodio_result: Callable[..., dict[str, Any]]) -> None:
        result = geocodio_result()
        del result["address_components"]["city"]
        assert parse_district_result(result, "90210").city == UNKNOWN_CITY

    def test_missing_location_raises(self) -> None:
        with pytest.raises(ProviderResponseError):
            parse_district_result({"accuracy": 1.0}, "90210")

    def test_non_numeric_accuracy_defaulted(self, geocodio_result: Callable[..., dict[str, Any]]) -> None:
        assert parse_district_result(geocodio_result(accuracy="high"), "90210").accuracy == 0.5
        assert parse_district_result(geocodio_result(accuracy=float("nan")), "90210").accuracy == 0.5

    def test_malformed_field_shapes_ignored(self, geocodio_result: Callable[..., dict[str, Any]]) -> None:
        result = geocodio_result()
        result["fields"] = {
            "congressional_districts": [{"district_number": 30, "congress_numbers": 119}, "junk"],
            "state_legislative_districts": ["senate", "house"],
            "county": "Los Angeles County",
        }
        mapping = parse_district_result(result, "90210")
        assert isinstance(mapping, SingleDistrictMapping)
        assert mapping.congressional_district == 30
        assert mapping.state_senate_district == 0
        assert mapping.state_assembly_district == 0
        assert mapping.county == "Los Angeles County"

    def test_non_dict_fields_ignored(self, geocodio_result: Callable[..., dict[str, Any]]) -> None:
        result = geocodio_result()
        result["fields"] = "cd,stateleg"
        result["address_components"] = None
        mapping = parse_district_result(result, "90210")
        assert mapping.primary().congressional == 0
        assert mapping.city == UNKNOWN_CITY

    def test_invalid_component_value_raises(self, geocodio_result: Callable[..., dict[str, Any]]) -> None:
        result = geocodio_result()
        result["address_components"]["city"] = 123
        with pytest.raises(ProviderResponseError):
            parse_district_result(result, "90210")

    @pytest.mark.parametrize("result", ["garbage", {"location": {"lat": "north", "lng": -118.4}}, {"location": []}])
    def test_unusable_result_raises(self, result: Any) -> None:
        with pytest.raises(ProviderResponseError):
            parse_district_result(result, "90210")

    def test_select_best_result(self, geocodio_result: Callable[..., dict[str, Any]]) -> None:
        low = geocodio_result(accuracy=0.4, congressional=(1,))
        high = geocodio_result(accuracy=0.9, congressional=(2,))
        assert select_best_result([low, high]) is high

    def test_select_best_result_skips_non_objects(self, geocodio_result: Callable[..., dict[str, Any]]) -> None:
        result = geocodio_result(accuracy="high")
        assert select_best_result(["junk", result]) is result
