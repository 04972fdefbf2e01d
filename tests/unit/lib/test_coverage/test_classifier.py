"""Unit tests for coverage-tier classification."""

from datetime import UTC, datetime

import pytest

from district_lookup.lib.coverage import (
    CoverageLevel,
    classify,
    classify_location,
    coverage_stats,
    federal_only_state_names,
    has_full_coverage,
    location_from_mapping,
    normalize_state,
    state_name,
)
from district_lookup.schemas.district import (
    DistrictSet,
    DistrictSource,
    MultiDistrictMapping,
    PrimaryDistricts,
)


class TestClassify:
    def test_california_full_coverage(self) -> None:
        tier = classify("CA", "Beverly Hills")
        assert tier.level == CoverageLevel.FULL_COVERAGE
        assert tier.show_federal and tier.show_state and tier.show_local
        assert not tier.collect_email
        assert tier.message == "Complete political information for Beverly Hills, CA"

    def test_new_york_federal_only(self) -> None:
        tier = classify("NY", "New York")
        assert tier.level == CoverageLevel.FEDERAL_ONLY
        assert tier.show_federal
        assert not tier.show_state
        assert not tier.show_local
        assert tier.collect_email
        assert "New York state and local data" in (tier.expand_message or "")

    def test_unknown_state_not_supported(self) -> None:
        tier = classify("ZZ")
        assert tier.level == CoverageLevel.NOT_SUPPORTED
        assert not (tier.show_federal or tier.show_state or tier.show_local)
        assert tier.collect_email
        assert tier.message == "Location not supported"

    @pytest.mark.parametrize("state", ["California", "california", "ca", " CA "])
    def test_full_names_and_case(self, state: str) -> None:
        assert classify(state).level == CoverageLevel.FULL_COVERAGE

    def test_district_of_columbia(self) -> None:
        assert classify("District of Columbia").level == CoverageLevel.FEDERAL_ONLY
        assert classify("DC").level == CoverageLevel.FEDERAL_ONLY

    def test_message_without_city(self) -> None:
        assert classify("TX").message == "Federal representatives for Texas"


class TestStateHelpers:
    def test_normalize_state(self) -> None:
        assert normalize_state("New Hampshire") == "NH"
        assert normalize_state("wy") == "WY"
        assert normalize_state("Atlantis") == "ATLANTIS"

    def test_state_name(self) -> None:
        assert state_name("GA") == "Georgia"
        assert state_name("ZZ") == "ZZ"

    def test_federal_only_state_names(self) -> None:
        names = federal_only_state_names()
        assert len(names) == 50
        assert "California" not in names
        assert names == sorted(names)

    def test_has_full_coverage(self) -> None:
        assert has_full_coverage("California")
        assert not has_full_coverage("Oregon")

    def test_coverage_stats(self) -> None:
        assert coverage_stats() == {
            "full_coverage_states": 1,
            "federal_only_states": 50,
            "total_supported_states": 51,
        }


class TestLocationFromMapping:
    def test_uses_primary_districts(self) -> None:
        mapping = MultiDistrictMapping(
            zip_code="90210",
            county="Los Angeles County",
            city="Beverly Hills",
            state="CA",
            coordinates=(-118.4065, 34.0901),
            accuracy=0.9,
            source=DistrictSource.PROVIDER,
            last_updated=datetime.now(UTC),
            districts=DistrictSet(congressional=(30, 32), state_senate=(24,), state_assembly=(51,)),
            primary_districts=PrimaryDistricts(congressional=30, state_senate=24, state_assembly=51),
        )
        location = location_from_mapping(mapping)
        assert location.congressional_district == 30
        assert location.state_assembly_district == 51
        assert location.zip_code == "90210"
        assert classify_location(location).level == CoverageLevel.FULL_COVERAGE
