"""Coverage library: which data tiers are available for a location.

Public API:
    - classify: State (and optional city) to CoverageTier
    - classify_location: Classify a LocationData
    - CoverageTier / CoverageLevel: Classification result types
    - LocationData / location_from_mapping: Display summary of a mapping
    - normalize_state / state_name: State name and abbreviation lookup
    - federal_only_state_names / has_full_coverage / coverage_stats: Coverage facts
"""

from district_lookup.lib.coverage.classifier import (
    FEDERAL_ONLY_STATES,
    FULL_COVERAGE_STATES,
    CoverageLevel,
    CoverageTier,
    LocationData,
    classify,
    classify_location,
    coverage_stats,
    federal_only_state_names,
    has_full_coverage,
    location_from_mapping,
    normalize_state,
    state_name,
)

__all__ = [
    "FEDERAL_ONLY_STATES",
    "FULL_COVERAGE_STATES",
    "CoverageLevel",
    "CoverageTier",
    "LocationData",
    "classify",
    "classify_location",
    "coverage_stats",
    "federal_only_state_names",
    "has_full_coverage",
    "location_from_mapping",
    "normalize_state",
    "state_name",
]
