"""Coverage-tier classification by state.

Only California carries state and local data. Every other US state and DC
gets federal representatives plus a waitlist prompt; anything else is not
supported.
"""

from dataclasses import dataclass
from enum import StrEnum

from district_lookup.lib.coverage.states import STATE_ABBREVIATIONS, STATE_NAMES
from district_lookup.schemas.district import MultiDistrictMapping, SingleDistrictMapping

FULL_COVERAGE_STATES: frozenset[str] = frozenset({"CA"})
FEDERAL_ONLY_STATES: frozenset[str] = frozenset(STATE_NAMES) - FULL_COVERAGE_STATES


class CoverageLevel(StrEnum):
    FULL_COVERAGE = "full_coverage"
    FEDERAL_ONLY = "federal_only"
    NOT_SUPPORTED = "not_supported"


@dataclass(frozen=True)
class CoverageTier:
    """What the product can show for a location.

    Attributes:
        level: Coverage level.
        show_federal: Federal representatives are available.
        show_state: State legislators are available.
        show_local: County and city officials are available.
        collect_email: Offer the expansion waitlist.
        message: Headline for the location.
        expand_message: Waitlist prompt, when ``collect_email`` is set.
    """

    level: CoverageLevel
    show_federal: bool
    show_state: bool
    show_local: bool
    collect_email: bool
    message: str
    expand_message: str | None = None


@dataclass(frozen=True)
class LocationData:
    """Display-oriented summary of a resolved ZIP code."""

    city: str
    state: str
    county: str
    zip_code: str
    coordinates: tuple[float, float]
    congressional_district: int
    state_senate_district: int | None = None
    state_assembly_district: int | None = None


def normalize_state(state: str) -> str:
    """Map a state name or abbreviation to its upper-case abbreviation.

    Unknown input is returned stripped and upper-cased.
    """
    cleaned = state.strip()
    return STATE_ABBREVIATIONS.get(cleaned.lower(), cleaned.upper())


def state_name(state: str) -> str:
    """Full name for a state abbreviation or name; unknown input is echoed."""
    code = normalize_state(state)
    return STATE_NAMES.get(code, state)


def _place(city: str | None, label: str) -> str:
    return f"{city}, {label}" if city else label


def classify(state: str, city: str | None = None) -> CoverageTier:
    """Classify a location into a coverage tier.

    Args:
        state: State abbreviation or full name, in any case.
        city: Optional city, used only in the user-facing message.

    Returns:
        The CoverageTier for the state.
    """
    code = normalize_state(state)

    if code in FULL_COVERAGE_STATES:
        return CoverageTier(
            level=CoverageLevel.FULL_COVERAGE,
            show_federal=True,
            show_state=True,
            show_local=True,
            collect_email=False,
            message=f"Complete political information for {_place(city, code)}",
        )

    if code in FEDERAL_ONLY_STATES:
        name = STATE_NAMES[code]
        return CoverageTier(
            level=CoverageLevel.FEDERAL_ONLY,
            show_federal=True,
            show_state=False,
            show_local=False,
            collect_email=True,
            message=f"Federal representatives for {_place(city, name)}",
            expand_message=f"We're working to add {name} state and local data - join the waitlist!",
        )

    return CoverageTier(
        level=CoverageLevel.NOT_SUPPORTED,
        show_federal=False,
        show_state=False,
        show_local=False,
        collect_email=True,
        message="Location not supported",
        expand_message="Help us expand to your area - let us know where you'd like to see coverage!",
    )


def location_from_mapping(mapping: SingleDistrictMapping | MultiDistrictMapping) -> LocationData:
    primary = mapping.primary()
    return LocationData(
        city=mapping.city,
        state=mapping.state,
        county=mapping.county,
        zip_code=mapping.zip_code,
        coordinates=mapping.coordinates,
        congressional_district=primary.congressional,
        state_senate_district=primary.state_senate,
        state_assembly_district=primary.state_assembly,
    )


def classify_location(location: LocationData) -> CoverageTier:
    return classify(location.state, location.city)


def federal_only_state_names() -> list[str]:
    """Sorted full names of the federal-only jurisdictions."""
    return sorted(STATE_NAMES[code] for code in FEDERAL_ONLY_STATES)


def has_full_coverage(state: str) -> bool:
    return normalize_state(state) in FULL_COVERAGE_STATES


def coverage_stats() -> dict[str, int]:
    return {
        "full_coverage_states": len(FULL_COVERAGE_STATES),
        "federal_only_states": len(FEDERAL_ONLY_STATES),
        "total_supported_states": len(FULL_COVERAGE_STATES) + len(FEDERAL_ONLY_STATES),
    }
