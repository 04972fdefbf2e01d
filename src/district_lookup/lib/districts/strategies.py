"""Ordered resolution strategies forming the district fallback chain.

Each strategy either produces a mapping for the ZIP code or returns None to
let the next one try. The resolver runs them in order and stops at the first
answer.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Any

from district_lookup.lib.districts.base import DistrictLookupError, LookupOptions
from district_lookup.lib.districts.cache import CacheStore
from district_lookup.lib.districts.geocodio import (
    UNKNOWN_CITY,
    UNKNOWN_COUNTY,
    parse_district_result,
    select_best_result,
)
from district_lookup.lib.districts.local_data import KNOWN_ZIPS, find_prefix_area
from district_lookup.lib.districts.region import CALIFORNIA, RegionProfile
from district_lookup.schemas.district import (
    DistrictCategory,
    DistrictSource,
    MultiDistrictMapping,
    SingleDistrictMapping,
)

KNOWN_ZIP_ACCURACY = 0.8
PREFIX_AREA_ACCURACY = 0.5
REGION_DEFAULT_ACCURACY = 0.1


@dataclass
class ResolutionContext:
    """State shared by the strategies for one resolution.

    Attributes:
        zip_code: Normalized 5-digit ZIP code.
        options: Caller's lookup options.
        provider_results: Raw provider results, or None when the provider
            was not called or failed.
        provider_error: Why the provider produced no results, if it failed.
    """

    zip_code: str
    options: LookupOptions
    provider_results: list[dict[str, Any]] | None = None
    provider_error: DistrictLookupError | None = None
    now: datetime = field(default_factory=lambda: datetime.now(UTC))


class ResolutionStrategy(ABC):
    """One step of the fallback chain."""

    #: Whether answers from this strategy are written back to the cache.
    writes_cache: bool = True

    @property
    @abstractmethod
    def name(self) -> str:
        """Short identifier used in logs."""

    @abstractmethod
    async def resolve(self, ctx: ResolutionContext) -> SingleDistrictMapping | MultiDistrictMapping | None:
        """Produce a mapping or None to defer to the next strategy."""


class ProviderResultStrategy(ResolutionStrategy):
    """Build the mapping from the provider's highest-accuracy result."""

    def __init__(self, region: RegionProfile = CALIFORNIA) -> None:
        self._region = region

    @property
    def name(self) -> str:
        return "provider"

    async def resolve(self, ctx: ResolutionContext) -> SingleDistrictMapping | MultiDistrictMapping | None:
        if not ctx.provider_results:
            return None
        best = select_best_result(ctx.provider_results)
        return parse_district_result(best, ctx.zip_code, region=self._region, now=ctx.now)


class StaleCacheStrategy(ResolutionStrategy):
    """Reuse an expired cache entry written within a relaxed maximum age."""

    writes_cache = False

    def __init__(self, cache: CacheStore, max_age: timedelta) -> None:
        self._cache = cache
        self._max_age = max_age

    @property
    def name(self) -> str:
        return "stale_cache"

    async def resolve(self, ctx: ResolutionContext) -> SingleDistrictMapping | MultiDistrictMapping | None:
        return await self._cache.get_stale(ctx.zip_code, self._max_age)


class LocalHeuristicStrategy(ResolutionStrategy):
    """Answer from the known-ZIP table, then from 3-digit prefix areas."""

    def __init__(self, region: RegionProfile = CALIFORNIA) -> None:
        self._region = region

    @property
    def name(self) -> str:
        return "local_heuristic"

    async def resolve(self, ctx: ResolutionContext) -> SingleDistrictMapping | MultiDistrictMapping | None:
        known = KNOWN_ZIPS.get(ctx.zip_code)
        if known is not None:
            return self._build(
                ctx,
                city=known.city,
                county=known.county,
                districts=(known.congressional, known.state_senate, known.state_assembly),
                coordinates=known.coordinates,
                accuracy=KNOWN_ZIP_ACCURACY,
            )

        if not self._region.owns_zip_prefix(ctx.zip_code):
            return None
        area = find_prefix_area(ctx.zip_code)
        if area is None:
            return None
        return self._build(
            ctx,
            city=area.city,
            county=area.county,
            districts=(area.congressional, area.state_senate, area.state_assembly),
            coordinates=area.coordinates,
            accuracy=PREFIX_AREA_ACCURACY,
        )

    def _build(
        self,
        ctx: ResolutionContext,
        *,
        city: str,
        county: str,
        districts: tuple[int, int, int],
        coordinates: tuple[float, float],
        accuracy: float,
    ) -> SingleDistrictMapping:
        congressional, senate, assembly = districts
        return SingleDistrictMapping(
            zip_code=ctx.zip_code,
            county=county,
            city=city,
            state=self._region.state,
            coordinates=coordinates,
            congressional_district=self._region.clamp_district(DistrictCategory.CONGRESSIONAL, congressional),
            state_senate_district=self._region.clamp_district(DistrictCategory.STATE_SENATE, senate),
            state_assembly_district=self._region.clamp_district(DistrictCategory.STATE_ASSEMBLY, assembly),
            accuracy=accuracy,
            source=DistrictSource.FALLBACK_WITH_LOCAL,
            last_updated=ctx.now,
        )


class RegionDefaultStrategy(ResolutionStrategy):
    """Last resort: the region centre with district 1 everywhere."""

    def __init__(self, region: RegionProfile = CALIFORNIA) -> None:
        self._region = region

    @property
    def name(self) -> str:
        return "region_default"

    async def resolve(self, ctx: ResolutionContext) -> SingleDistrictMapping:
        return SingleDistrictMapping(
            zip_code=ctx.zip_code,
            county=UNKNOWN_COUNTY,
            city=UNKNOWN_CITY,
            state=self._region.state,
            coordinates=self._region.center,
            congressional_district=1,
            state_senate_district=1,
            state_assembly_district=1,
            accuracy=REGION_DEFAULT_ACCURACY,
            source=DistrictSource.FALLBACK,
            last_updated=ctx.now,
        )


def default_strategies(
    cache: CacheStore,
    stale_max_age: timedelta,
    region: RegionProfile = CALIFORNIA,
) -> list[ResolutionStrategy]:
    """The standard chain: provider, stale cache, local heuristic, region default."""
    return [
        ProviderResultStrategy(region),
        StaleCacheStrategy(cache, stale_max_age),
        LocalHeuristicStrategy(region),
        RegionDefaultStrategy(region),
    ]
