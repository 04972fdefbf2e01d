"""Shared test fixtures: settings, a scripted district provider, and Geocodio payload builders."""

import asyncio
from collections.abc import Callable, Iterable
from typing import Any

import pytest

from district_lookup.core.config import Settings
from district_lookup.lib.districts import (
    BaseDistrictProvider,
    CacheStore,
    DistrictResolver,
    RateLimiter,
)


def build_geocodio_result(
    *,
    lat: float = 34.0901,
    lng: float = -118.4065,
    accuracy: float | None = 1.0,
    city: str = "Beverly Hills",
    county: str = "Los Angeles County",
    state: str = "CA",
    congressional: Iterable[int] = (30,),
    senate: Iterable[int] = (24,),
    assembly: Iterable[int] = (51,),
    congress_numbers: Iterable[int] = (119,),
) -> dict[str, Any]:
    """A Geocodio result object shaped like the live API's."""
    result: dict[str, Any] = {
        "location": {"lat": lat, "lng": lng},
        "address_components": {"city": city, "county": county, "state": state},
        "fields": {
            "congressional_districts": [
                {"district_number": n, "congress_numbers": list(congress_numbers)} for n in congressional
            ],
            "state_legislative_districts": {
                "senate": [{"district_number": n} for n in senate],
                "house": [{"district_number": n} for n in assembly],
            },
            "county": {"name": county},
        },
    }
    if accuracy is not None:
        result["accuracy"] = accuracy
    return result


class FakeDistrictProvider(BaseDistrictProvider):
    """Scripted provider.

    ``responses`` maps a ZIP code to a list of outcomes consumed one per call;
    an outcome is either a result list or an exception to raise. The last
    outcome repeats once the list is exhausted. Unscripted ZIP codes get a
    Beverly Hills result.
    """

    def __init__(
        self,
        responses: dict[str, list[Any]] | None = None,
        *,
        configured: bool = True,
        delay: float = 0.0,
    ) -> None:
        self.responses = responses or {}
        self.configured = configured
        self.delay = delay
        self.calls: list[str] = []
        self.in_flight = 0
        self.max_in_flight = 0

    @property
    def provider_name(self) -> str:
        return "fake"

    @property
    def is_configured(self) -> bool:
        return self.configured

    async def fetch(self, zip_code: str) -> list[dict[str, Any]]:
        self.calls.append(zip_code)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            script = self.responses.get(zip_code)
            if script is None:
                return [build_geocodio_result()]
            outcome = script.pop(0) if len(script) > 1 else script[0]
            if isinstance(outcome, BaseException):
                raise outcome
            return outcome
        finally:
            self.in_flight -= 1


@pytest.fixture
def settings() -> Settings:
    """Test application settings."""
    return Settings(
        _env_file=None,  # type: ignore[call-arg]
        geocodio_api_key="test-key",
        geocodio_retry_backoff=0.0,
        batch_delay_ms=0,
    )


@pytest.fixture
def geocodio_result() -> Callable[..., dict[str, Any]]:
    return build_geocodio_result


@pytest.fixture
def make_provider() -> Callable[..., FakeDistrictProvider]:
    return FakeDistrictProvider


@pytest.fixture
def make_resolver() -> Callable[..., DistrictResolver]:
    """Factory for a resolver over an in-memory cache with zero retry backoff."""

    def _make(
        provider: BaseDistrictProvider | None = None,
        *,
        cache: CacheStore | None = None,
        rate_limiter: RateLimiter | None = None,
        **kwargs: Any,
    ) -> DistrictResolver:
        kwargs.setdefault("retry_backoff", 0.0)
        return DistrictResolver(
            provider if provider is not None else FakeDistrictProvider(),
            cache if cache is not None else CacheStore(),
            rate_limiter if rate_limiter is not None else RateLimiter(1000, 86400),
            **kwargs,
        )

    return _make
