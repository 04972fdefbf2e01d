"""Geocodio district provider.

Uses the Geocodio API (https://www.geocod.io/docs/) to look up the
congressional and state legislative districts for a ZIP code. Requires an
API key, sent as a bearer token.
"""

import math
from datetime import UTC, datetime
from email.utils import parsedate_to_datetime
from typing import Any

import httpx
from loguru import logger
from pydantic import ValidationError

from district_lookup.lib.districts.base import (
    BaseDistrictProvider,
    DistrictNetworkError,
    InvalidApiKeyError,
    ProviderRateLimitedError,
    ProviderResponseError,
    ProviderTimeoutError,
)
from district_lookup.lib.districts.region import CALIFORNIA, RegionProfile
from district_lookup.schemas.district import (
    DistrictSet,
    DistrictSource,
    MultiDistrictMapping,
    PrimaryDistricts,
    SingleDistrictMapping,
)

GEOCODIO_API_URL = "https://api.geocod.io/v1.7"
DEFAULT_TIMEOUT = 10.0
DEFAULT_FIELDS = "cd,stateleg"
CURRENT_CONGRESS = 119
UNKNOWN_CITY = "Unknown City"
UNKNOWN_COUNTY = "Unknown County"


class GeocodioDistrictProvider(BaseDistrictProvider):
    """Geocodio district lookup by postal code.

    Args:
        api_key: Geocodio API key.
        base_url: API base URL, without the ``/geocode`` path.
        timeout: Per-request timeout in seconds.
        fields: Geocodio ``fields`` selector.
        region: Region whose state is sent with every query.
        client: Optional shared ``httpx.AsyncClient``; a short-lived client
            is opened per request when omitted.
    """

    def __init__(
        self,
        api_key: str | None,
        base_url: str = GEOCODIO_API_URL,
        timeout: float = DEFAULT_TIMEOUT,
        fields: str = DEFAULT_FIELDS,
        region: RegionProfile = CALIFORNIA,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._api_key = api_key or ""
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._fields = fields
        self._region = region
        self._client = client

    @property
    def provider_name(self) -> str:
        return "geocodio"

    @property
    def is_configured(self) -> bool:
        return bool(self._api_key)

    async def fetch(self, zip_code: str) -> list[dict[str, Any]]:
        """Fetch district results for a ZIP code in a single attempt.

        Args:
            zip_code: Normalized 5-digit ZIP code.

        Returns:
            Raw Geocodio result objects (possibly empty).

        Raises:
            InvalidApiKeyError: Missing key, or HTTP 401/403.
            ProviderRateLimitedError: On HTTP 429.
            ProviderTimeoutError: When the request times out.
            DistrictNetworkError: On connection failures and other HTTP errors.
            ProviderResponseError: On a non-JSON or malformed body.
        """
        if not self.is_configured:
            raise InvalidApiKeyError("Geocodio API key is required", zip_code)

        params = {
            "postal_code": zip_code,
            "state": self._region.state,
            "fields": self._fields,
        }

        try:
            response = await self._get(params)
        except httpx.TimeoutException as e:
            logger.warning(f"Geocodio district lookup timeout for {zip_code}")
            raise ProviderTimeoutError("Request timeout", zip_code) from e
        except httpx.RequestError as e:
            logger.warning(f"Geocodio district lookup connection error for {zip_code}: {e}")
            raise DistrictNetworkError(f"Request failed: {e}", zip_code) from e

        status = response.status_code
        if status == 429:
            retry_after = parse_retry_after(response.headers.get("Retry-After"))
            logger.warning(f"Geocodio rate limited request for {zip_code} (retry after {retry_after}s)")
            raise ProviderRateLimitedError("Provider rate limit exceeded", zip_code, retry_after=retry_after)
        if status in (401, 403):
            logger.error(f"Geocodio rejected credentials (HTTP {status})")
            raise InvalidApiKeyError(f"Provider rejected API key (HTTP {status})", zip_code)
        if status >= 400:
            logger.warning(f"Geocodio district lookup HTTP error {status} for {zip_code}")
            raise DistrictNetworkError(
                _error_message(response),
                zip_code,
                status_code=status,
                retryable=status >= 500,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise ProviderResponseError("Provider returned a non-JSON response", zip_code) from e

        results = data.get("results", []) if isinstance(data, dict) else None
        if not isinstance(results, list):
            raise ProviderResponseError("Provider response has no results list", zip_code)
        return results

    async def _get(self, params: dict[str, str]) -> httpx.Response:
        url = f"{self._base_url}/geocode"
        headers = {
            "Authorization": f"Bearer {self._api_key}",
            "Accept": "application/json",
        }
        if self._client is not None:
            return await self._client.get(url, params=params, headers=headers, timeout=self._timeout)
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            return await client.get(url, params=params, headers=headers)


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and body.get("error"):
        return str(body["error"])
    return f"API request failed: {response.status_code}"


def parse_retry_after(value: str | None) -> float | None:
    """Parse a ``Retry-After`` header (delta-seconds or HTTP date) into seconds."""
    if not value:
        return None
    value = value.strip()
    if value.isdigit():
        return float(value)
    try:
        when = parsedate_to_datetime(value)
    except (TypeError, ValueError):
        return None
    if when.tzinfo is None:
        when = when.replace(tzinfo=UTC)
    return max((when - datetime.now(UTC)).total_seconds(), 0.0)


def _distinct(numbers: list[int]) -> tuple[int, ...]:
    """De-duplicate while preserving provider order."""
    return tuple(dict.fromkeys(numbers))


def _to_int(value: Any) -> int | None:
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        return None


def _to_float(value: Any) -> float | None:
    """Coerce a provider number, returning None for missing, non-numeric or non-finite values."""
    if isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _as_dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_entries(value: Any) -> list[dict[str, Any]]:
    if not isinstance(value, list):
        return []
    return [e for e in value if isinstance(e, dict)]


def _congressional_numbers(entries: list[dict[str, Any]]) -> tuple[int, ...]:
    # Keep current-Congress entries when the provider tags them
    tagged = [e for e in entries if isinstance(e.get("congress_numbers"), list) and e["congress_numbers"]]
    if tagged:
        entries = [e for e in tagged if CURRENT_CONGRESS in {_to_int(c) for c in e["congress_numbers"]}]
    return _distinct([n for e in entries if (n := _to_int(e.get("district_number"))) is not None])


def _legislative_numbers(entries: list[dict[str, Any]]) -> tuple[int, ...]:
    return _distinct([n for e in entries if (n := _to_int(e.get("district_number"))) is not None])


def _result_accuracy(result: Any) -> float:
    if not isinstance(result, dict):
        return -1.0
    return _to_float(result.get("accuracy")) or 0.0


def select_best_result(results: list[dict[str, Any]]) -> dict[str, Any]:
    """Pick the single highest-accuracy result."""
    return max(results, key=_result_accuracy)


def parse_district_result(
    result: dict[str, Any],
    zip_code: str,
    *,
    allow_multi_district: bool = True,
    region: RegionProfile = CALIFORNIA,
    now: datetime | None = None,
) -> SingleDistrictMapping | MultiDistrictMapping:
    """Build a district mapping from one Geocodio result.

    A category with no usable district number is recorded as 0, which
    validation later flags as out of range.

    Args:
        result: A single Geocodio result object.
        zip_code: 5-digit ZIP code being resolved.
        allow_multi_district: When False, a multi-district answer is
            collapsed to its primary districts.
        region: Region used for the default state code.
        now: Timestamp for ``last_updated``.

    Returns:
        SingleDistrictMapping or MultiDistrictMapping.

    Raises:
        ProviderResponseError: If the result has no usable location or its
            fields cannot be turned into a valid mapping.
    """
    location = _as_dict(result.get("location")) if isinstance(result, dict) else {}
    lat = _to_float(location.get("lat"))
    lng = _to_float(location.get("lng"))
    if lat is None or lng is None:
        logger.warning(f"Failed to parse Geocodio response for {zip_code}: no usable location")
        msg = "Failed to parse response: result has no usable location"
        raise ProviderResponseError(msg, zip_code)

    fields = _as_dict(result.get("fields"))
    components = _as_dict(result.get("address_components"))
    legislative = _as_dict(fields.get("state_legislative_districts"))

    districts = DistrictSet(
        congressional=_congressional_numbers(_as_entries(fields.get("congressional_districts"))),
        state_senate=_legislative_numbers(_as_entries(legislative.get("senate"))),
        state_assembly=_legislative_numbers(_as_entries(legislative.get("house"))),
    )
    primary = PrimaryDistricts(
        congressional=districts.congressional[0] if districts.congressional else 0,
        state_senate=districts.state_senate[0] if districts.state_senate else 0,
        state_assembly=districts.state_assembly[0] if districts.state_assembly else 0,
    )

    accuracy = _to_float(result.get("accuracy"))
    county_field = _as_dict(fields.get("county"))
    base: dict[str, Any] = {
        "zip_code": zip_code,
        "county": county_field.get("name") or components.get("county") or UNKNOWN_COUNTY,
        "city": components.get("city") or UNKNOWN_CITY,
        "state": components.get("state") or region.state,
        "coordinates": (lng, lat),
        "accuracy": min(max(accuracy, 0.0), 1.0) if accuracy is not None else 0.5,
        "source": DistrictSource.PROVIDER,
        "last_updated": now or datetime.now(UTC),
    }

    try:
        if districts.spans_multiple and allow_multi_district:
            return MultiDistrictMapping(**base, districts=districts, primary_districts=primary)

        return SingleDistrictMapping(
            **base,
            congressional_district=primary.congressional,
            state_senate_district=primary.state_senate,
            state_assembly_district=primary.state_assembly,
        )
    except ValidationError as e:
        logger.warning(f"Failed to parse Geocodio response for {zip_code}: {e}")
        raise ProviderResponseError(f"Failed to parse response: {e.error_count()} invalid fields", zip_code) from e
