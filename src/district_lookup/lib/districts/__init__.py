"""Districts library: ZIP code to political district resolution.

Public API:
    - DistrictResolver: Cache, rate-limited provider and fallback chain
    - LookupOptions: Per-call resolution options
    - normalize_zip / is_valid_zip: ZIP format validation
    - CacheStore: Expiring mapping cache over a pluggable backend
    - InMemoryCacheBackend / JsonFileCacheBackend: Cache persistence backends
    - RateLimiter: Fixed-window provider request counter
    - ConcurrencyGate: FIFO semaphore bounding concurrent resolutions
    - BaseDistrictProvider: Abstract provider interface
    - GeocodioDistrictProvider: Geocodio provider
    - ResolutionStrategy: One step of the fallback chain
    - RegionProfile / CALIFORNIA: Served-region facts
    - DistrictLookupError and subclasses: Error taxonomy
    - build_district_resolver: Wire a resolver from settings
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from loguru import logger

from district_lookup.lib.districts.base import (
    ApiLimitExceededError,
    BaseDistrictProvider,
    DistrictLookupError,
    DistrictNetworkError,
    InvalidApiKeyError,
    InvalidZipFormatError,
    LookupOptions,
    ProviderRateLimitedError,
    ProviderResponseError,
    ProviderTimeoutError,
    ZipNotFoundError,
    is_valid_zip,
    normalize_zip,
)
from district_lookup.lib.districts.cache import (
    CacheBackend,
    CacheStats,
    CacheStore,
    InMemoryCacheBackend,
    JsonFileCacheBackend,
)
from district_lookup.lib.districts.gate import ConcurrencyGate
from district_lookup.lib.districts.geocodio import GeocodioDistrictProvider
from district_lookup.lib.districts.local_data import supported_zip_codes
from district_lookup.lib.districts.rate_limit import RateLimiter
from district_lookup.lib.districts.region import CALIFORNIA, RegionProfile, validate_region_coordinates
from district_lookup.lib.districts.resolver import DistrictResolver
from district_lookup.lib.districts.strategies import ResolutionContext, ResolutionStrategy, default_strategies

if TYPE_CHECKING:
    import httpx

    from district_lookup.core.config import Settings


def build_district_resolver(settings: Settings, *, client: httpx.AsyncClient | None = None) -> DistrictResolver:
    """Build a resolver wired from application settings.

    Uses a JSON-file cache when ``cache_path`` is set, otherwise an in-memory
    one. Without a Geocodio API key the resolver answers from fallbacks only.

    Args:
        settings: Application settings.
        client: Optional shared HTTP client for the provider.

    Returns:
        A ready-to-use DistrictResolver.
    """
    backend: CacheBackend
    if settings.cache_path:
        backend = JsonFileCacheBackend(settings.cache_path)
    else:
        backend = InMemoryCacheBackend()

    cache = CacheStore(
        backend,
        default_ttl=settings.cache_ttl,
        cleanup_threshold=settings.cache_cleanup_threshold,
    )
    provider = GeocodioDistrictProvider(
        api_key=settings.geocodio_api_key,
        base_url=settings.geocodio_base_url,
        timeout=settings.geocodio_timeout,
        fields=settings.geocodio_fields,
        client=client,
    )
    if not provider.is_configured:
        logger.warning("GEOCODIO_API_KEY is not set; district lookups will use fallback data only")

    return DistrictResolver(
        provider,
        cache,
        RateLimiter(settings.rate_limit_requests, settings.rate_limit_window_seconds),
        max_retries=settings.geocodio_max_retries,
        retry_backoff=settings.geocodio_retry_backoff,
        fallback_ttl=settings.cache_fallback_ttl,
        stale_max_age=settings.cache_stale_max_age,
    )


__all__ = [
    "CALIFORNIA",
    "ApiLimitExceededError",
    "BaseDistrictProvider",
    "CacheBackend",
    "CacheStats",
    "CacheStore",
    "ConcurrencyGate",
    "DistrictLookupError",
    "DistrictNetworkError",
    "DistrictResolver",
    "GeocodioDistrictProvider",
    "InMemoryCacheBackend",
    "InvalidApiKeyError",
    "InvalidZipFormatError",
    "JsonFileCacheBackend",
    "LookupOptions",
    "ProviderRateLimitedError",
    "ProviderResponseError",
    "ProviderTimeoutError",
    "RateLimiter",
    "RegionProfile",
    "ResolutionContext",
    "ResolutionStrategy",
    "ZipNotFoundError",
    "build_district_resolver",
    "default_strategies",
    "is_valid_zip",
    "normalize_zip",
    "supported_zip_codes",
    "validate_region_coordinates",
]
