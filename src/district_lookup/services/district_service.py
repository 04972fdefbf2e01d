"""District service: coverage-aware resolution and representative lookup."""

from loguru import logger

from district_lookup.lib.coverage import CoverageTier, LocationData, classify, location_from_mapping
from district_lookup.lib.districts import DistrictResolver, LookupOptions
from district_lookup.lib.officials import (
    BaseRepresentativeProvider,
    Chamber,
    RepresentativeLevel,
    RepresentativeProviderError,
    RepresentativeQuery,
    RepresentativeRecord,
)
from district_lookup.schemas.district import MultiDistrictMapping, SingleDistrictMapping


async def resolve_with_coverage(
    resolver: DistrictResolver,
    zip_code: str,
    options: LookupOptions | None = None,
) -> tuple[SingleDistrictMapping | MultiDistrictMapping, LocationData, CoverageTier]:
    """Resolve a ZIP code and classify the coverage available for it.

    Args:
        resolver: District resolver.
        zip_code: ZIP code to resolve.
        options: Lookup options forwarded to the resolver.

    Returns:
        Tuple of (mapping, location summary, coverage tier).

    Raises:
        DistrictLookupError: Propagated from the resolver.
    """
    mapping = await resolver.resolve(zip_code, options)
    location = location_from_mapping(mapping)
    return mapping, location, classify(location.state, location.city)


def _queries_for(
    mapping: SingleDistrictMapping | MultiDistrictMapping,
    coverage: CoverageTier,
) -> list[RepresentativeQuery]:
    primary = mapping.primary()
    state = mapping.state
    queries: list[RepresentativeQuery] = []
    if coverage.show_federal:
        queries.append(
            RepresentativeQuery(RepresentativeLevel.FEDERAL, Chamber.HOUSE, state, district_number=primary.congressional)
        )
        queries.append(RepresentativeQuery(RepresentativeLevel.FEDERAL, Chamber.SENATE, state))
    if coverage.show_state:
        queries.append(
            RepresentativeQuery(RepresentativeLevel.STATE, Chamber.SENATE, state, district_number=primary.state_senate)
        )
        queries.append(
            RepresentativeQuery(
                RepresentativeLevel.STATE, Chamber.ASSEMBLY, state, district_number=primary.state_assembly
            )
        )
    if coverage.show_local:
        queries.append(
            RepresentativeQuery(RepresentativeLevel.COUNTY, Chamber.COUNTY_BOARD, state, jurisdiction=mapping.county)
        )
        queries.append(
            RepresentativeQuery(RepresentativeLevel.LOCAL, Chamber.EXECUTIVE, state, jurisdiction=mapping.city)
        )
    return queries


async def representatives_for_mapping(
    mapping: SingleDistrictMapping | MultiDistrictMapping,
    provider: BaseRepresentativeProvider,
    coverage: CoverageTier | None = None,
) -> list[RepresentativeRecord]:
    """Fetch the representatives for a mapping, limited to the levels its coverage tier shows.

    A query the provider cannot answer is logged and skipped, so one failing
    level does not hide the others.
    """
    coverage = coverage or classify(mapping.state, mapping.city)
    records: list[RepresentativeRecord] = []
    for query in _queries_for(mapping, coverage):
        try:
            records.extend(await provider.fetch(query))
        except RepresentativeProviderError as e:
            logger.warning(f"Representative lookup failed for {mapping.zip_code} ({query.level}/{query.chamber}): {e}")
    return records


async def lookup_representatives(
    resolver: DistrictResolver,
    provider: BaseRepresentativeProvider,
    zip_code: str,
    options: LookupOptions | None = None,
) -> list[RepresentativeRecord]:
    mapping, _location, coverage = await resolve_with_coverage(resolver, zip_code, options)
    return await representatives_for_mapping(mapping, provider, coverage)
