"""District resolver: cache, rate-limited provider call, then the fallback chain."""

import asyncio
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import timedelta
from typing import Any

from loguru import logger

from district_lookup.lib.districts.base import (
    ApiLimitExceededError,
    BaseDistrictProvider,
    DistrictLookupError,
    DistrictNetworkError,
    InvalidApiKeyError,
    LookupOptions,
    ProviderRateLimitedError,
    ZipNotFoundError,
    is_valid_zip,
    normalize_zip,
)
from district_lookup.lib.districts.cache import CacheStore
from district_lookup.lib.districts.local_data import KNOWN_ZIPS
from district_lookup.lib.districts.rate_limit import RateLimiter
from district_lookup.lib.districts.region import CALIFORNIA, RegionProfile
from district_lookup.lib.districts.strategies import ResolutionContext, ResolutionStrategy, default_strategies
from district_lookup.schemas.district import DistrictCategory, MultiDistrictMapping, SingleDistrictMapping

DEFAULT_MAX_RETRIES = 3
DEFAULT_RETRY_BACKOFF = 1.0  # seconds
DEFAULT_FALLBACK_TTL = timedelta(hours=24)
DEFAULT_STALE_MAX_AGE = timedelta(days=90)


@dataclass
class _InFlight:
    task: asyncio.Task[SingleDistrictMapping | MultiDistrictMapping]
    waiters: int = 0


def _shaped(
    mapping: SingleDistrictMapping | MultiDistrictMapping,
    options: LookupOptions,
) -> SingleDistrictMapping | MultiDistrictMapping:
    """Collapse a multi-district mapping for callers that asked for one district per category.

    The cache always holds the full mapping; only the returned value is collapsed.
    """
    if isinstance(mapping, MultiDistrictMapping) and not options.allow_multi_district:
        return mapping.collapse()
    return mapping


class DistrictResolver:
    """Resolve ZIP codes to district mappings.

    Lookup order: cache, then the provider (guarded by the rate limiter and
    retried with backoff), then the fallback strategies. The resolver prefers
    a degraded answer, marked by ``source`` and ``accuracy``, over raising; it
    raises only when the caller disables fallback.

    Concurrent lookups of the same ZIP with the same options share one
    in-flight resolution.

    Args:
        provider: District data provider; None means fallbacks only.
        cache: Cache store for resolved mappings.
        rate_limiter: Guard on provider attempts.
        region: Region the resolver serves.
        max_retries: Extra attempts after a 429, timeout or retryable error.
        retry_backoff: Base delay in seconds between attempts.
        fallback_ttl: Cache lifetime for answers not from the provider.
        stale_max_age: Oldest expired cache entry usable as a fallback.
        strategies: Override of the fallback chain; the first strategy is the
            one used when fallback is disabled.
    """

    def __init__(
        self,
        provider: BaseDistrictProvider | None,
        cache: CacheStore,
        rate_limiter: RateLimiter,
        *,
        region: RegionProfile = CALIFORNIA,
        max_retries: int = DEFAULT_MAX_RETRIES,
        retry_backoff: float = DEFAULT_RETRY_BACKOFF,
        fallback_ttl: timedelta = DEFAULT_FALLBACK_TTL,
        stale_max_age: timedelta = DEFAULT_STALE_MAX_AGE,
        strategies: list[ResolutionStrategy] | None = None,
    ) -> None:
        self.provider = provider
        self.cache = cache
        self.rate_limiter = rate_limiter
        self.region = region
        self.max_retries = max_retries
        self.retry_backoff = retry_backoff
        self.fallback_ttl = fallback_ttl
        self.strategies = strategies if strategies is not None else default_strategies(cache, stale_max_age, region)
        self._in_flight: dict[tuple[str, LookupOptions], _InFlight] = {}

    async def resolve(
        self,
        zip_code: str,
        options: LookupOptions | None = None,
    ) -> SingleDistrictMapping | MultiDistrictMapping:
        """Resolve one ZIP code to its districts.

        Args:
            zip_code: ``NNNNN`` or ``NNNNN-NNNN``.
            options: Lookup options; defaults to cache + fallback enabled.

        Returns:
            SingleDistrictMapping or MultiDistrictMapping.

        Raises:
            InvalidZipFormatError: Malformed input (raised before any I/O).
            ZipNotFoundError: Provider had no results and fallback is disabled.
            ApiLimitExceededError: Quota exhausted and fallback is disabled.
            DistrictNetworkError: Provider unreachable and fallback is disabled.
            InvalidApiKeyError: Provider unconfigured/rejected and fallback is disabled.
        """
        options = options or LookupOptions()
        clean_zip = normalize_zip(zip_code)

        if options.use_cache:
            cached = await self.cache.get(clean_zip, max_age=options.max_age)
            if cached is not None:
                logger.debug(f"District cache hit for {clean_zip}")
                return _shaped(cached, options)

        key = (clean_zip, options)
        entry = self._in_flight.get(key)
        if entry is None:
            task = asyncio.ensure_future(self._resolve_uncached(clean_zip, options))
            entry = _InFlight(task)
            self._in_flight[key] = entry
            task.add_done_callback(lambda _t, k=key, e=entry: self._forget(k, e))

        entry.waiters += 1
        try:
            return await asyncio.shield(entry.task)
        except asyncio.CancelledError:
            if entry.waiters <= 1 and not entry.task.done():
                entry.task.cancel()
            raise
        finally:
            entry.waiters -= 1

    def _forget(self, key: tuple[str, LookupOptions], entry: _InFlight) -> None:
        if self._in_flight.get(key) is entry:
            del self._in_flight[key]
        if not entry.task.cancelled() and entry.task.exception() is not None and entry.waiters == 0:
            logger.debug(f"Abandoned district lookup for {key[0]} failed: {entry.task.exception()}")

    async def _resolve_uncached(
        self,
        zip_code: str,
        options: LookupOptions,
    ) -> SingleDistrictMapping | MultiDistrictMapping:
        ctx = ResolutionContext(zip_code=zip_code, options=options)

        if self.provider is None or not self.provider.is_configured:
            error = InvalidApiKeyError("District provider API key is not configured", zip_code)
            if not options.include_fallback:
                raise error
            ctx.provider_error = error
        else:
            try:
                ctx.provider_results = await self._call_provider(self.provider, zip_code)
            except DistrictLookupError as e:
                if not options.include_fallback:
                    raise
                logger.warning(f"District provider failed for {zip_code}, using fallback: {e}")
                ctx.provider_error = e

        if ctx.provider_results == [] and not options.include_fallback:
            raise ZipNotFoundError("ZIP code not found in provider data", zip_code)

        strategies = self.strategies if options.include_fallback else self.strategies[:1]
        for strategy in strategies:
            try:
                mapping = await strategy.resolve(ctx)
            except DistrictLookupError as e:
                if not options.include_fallback:
                    raise
                logger.warning(f"District strategy {strategy.name} failed for {zip_code}: {e}")
                continue
            if mapping is None:
                continue

            if strategy.writes_cache:
                ttl = None if mapping.source == "provider" else self.fallback_ttl
                await self.cache.set(zip_code, mapping, ttl=ttl)
            if strategy is not strategies[0]:
                logger.info(
                    f"Resolved {zip_code} via {strategy.name} fallback (accuracy {mapping.accuracy:.2f})",
                )
            return _shaped(mapping, options)

        raise ctx.provider_error or ZipNotFoundError("No resolution strategy produced a mapping", zip_code)

    async def _call_provider(self, provider: BaseDistrictProvider, zip_code: str) -> list[dict[str, Any]]:
        """Call the provider with rate limiting and retry.

        HTTP 429 backs off exponentially, honoring ``Retry-After``; timeouts and
        retryable network errors back off linearly. Every attempt counts
        against the rate limiter.
        """
        attempt = 0
        while True:
            if not self.rate_limiter.allow():
                msg = "API rate limit exceeded. Please try again later."
                raise ApiLimitExceededError(msg, zip_code)
            self.rate_limiter.record()

            try:
                return await provider.fetch(zip_code)
            except ProviderRateLimitedError as e:
                if attempt >= self.max_retries:
                    raise
                delay = max(e.retry_after or 0.0, self.retry_backoff * (2**attempt))
            except DistrictNetworkError as e:
                if not e.retryable or attempt >= self.max_retries:
                    raise
                delay = self.retry_backoff * (attempt + 1)

            attempt += 1
            logger.debug(f"District provider retry {attempt}/{self.max_retries} for {zip_code} in {delay}s")
            await asyncio.sleep(delay)

    async def is_region_zip(self, zip_code: str) -> bool:
        """Whether a ZIP code lies in the served region.

        Uses the resolved coordinates when the provider answered; otherwise
        falls back to the region's ZIP prefix range.
        """
        if not is_valid_zip(zip_code):
            return False
        try:
            mapping = await self.resolve(zip_code)
        except DistrictLookupError:
            return self.region.owns_zip_prefix(zip_code)
        if mapping.source == "provider":
            return self.region.contains(mapping.longitude, mapping.latitude)
        return self.region.owns_zip_prefix(zip_code)

    async def zip_codes_for_district(
        self,
        category: DistrictCategory,
        district_number: int,
        zip_codes: Iterable[str],
    ) -> list[str]:
        """Return the ZIP codes whose mapping includes the given district.

        ZIP codes that cannot be resolved are skipped.
        """
        matches: list[str] = []
        for zip_code in zip_codes:
            try:
                mapping = await self.resolve(zip_code)
            except DistrictLookupError:
                continue
            if district_number in mapping.district_numbers(category):
                matches.append(zip_code)
        return matches

    async def clear_cache(self) -> None:
        await self.cache.clear()

    async def stats(self) -> dict[str, Any]:
        """Cache, rate-limit and reference-data statistics."""
        cache_stats = await self.cache.stats()
        return {
            "cache_size": cache_stats.size,
            "cache_expired": cache_stats.expired,
            "cache_hit_rate": cache_stats.hit_rate,
            "oldest_entry": cache_stats.oldest_entry,
            "newest_entry": cache_stats.newest_entry,
            "known_zip_codes": len(KNOWN_ZIPS),
            "rate_limit_remaining": self.rate_limiter.remaining,
            "in_flight": len(self._in_flight),
        }
