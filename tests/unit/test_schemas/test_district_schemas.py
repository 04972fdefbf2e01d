"""Unit tests for district mapping schemas."""

from datetime import UTC, datetime

import pytest
from pydantic import ValidationError

from district_lookup.schemas.district import (
    CacheEntry,
    DistrictCategory,
    DistrictSet,
    DistrictSource,
    MultiDistrictMapping,
    PrimaryDistricts,
    SingleDistrictMapping,
    district_mapping_adapter,
)

NOW = datetime(2025, 1, 15, 12, 0, tzinfo=UTC)


def _base(**overrides: object) -> dict:
    data = {
        "zip_code": "90210",
        "county": "Los Angeles County",
        "city": "Beverly Hills",
        "state": "CA",
        "coordinates": (-118.4065, 34.0901),
        "accuracy": 1.0,
        "source": DistrictSource.PROVIDER,
        "last_updated": NOW,
    }
    data.update(overrides)
    return data


def _single(**overrides: object) -> SingleDistrictMapping:
    return SingleDistrictMapping(
        **_base(**overrides),
        congressional_district=30,
        state_senate_district=24,
        state_assembly_district=51,
    )


def _multi() -> MultiDistrictMapping:
    return MultiDistrictMapping(
        **_base(),
        districts=DistrictSet(congressional=(30, 32), state_senate=(24,), state_assembly=(51,)),
        primary_districts=PrimaryDistricts(congressional=30, state_senate=24, state_assembly=51),
    )


class TestSingleDistrictMapping:
    def test_camel_case_serialization(self) -> None:
        data = _single().model_dump(mode="json", by_alias=True)
        assert data["kind"] == "single"
        assert data["zipCode"] == "90210"
        assert data["congressionalDistrict"] == 30
        assert data["stateAssemblyDistrict"] == 51
        assert data["lastUpdated"].startswith("2025-01-15T12:00:00")

    def test_coordinate_accessors(self) -> None:
        mapping = _single()
        assert mapping.longitude == -118.4065
        assert mapping.latitude == 34.0901

    def test_primary(self) -> None:
        primary = _single().primary()
        assert primary.for_category(DistrictCategory.STATE_SENATE) == 24

    def test_accuracy_bounds(self) -> None:
        with pytest.raises(ValidationError):
            _single(accuracy=1.5)

    def test_frozen(self) -> None:
        mapping = _single()
        with pytest.raises(ValidationError):
            mapping.city = "Elsewhere"  # type: ignore[misc]

    def test_is_fallback(self) -> None:
        assert not _single().is_fallback
        assert _single(source=DistrictSource.FALLBACK_WITH_LOCAL).is_fallback

    def test_out_of_range_district_is_representable(self) -> None:
        mapping = SingleDistrictMapping(
            **_base(),
            congressional_district=0,
            state_senate_district=24,
            state_assembly_district=51,
        )
        assert mapping.congressional_district == 0


class TestMultiDistrictMapping:
    def test_requires_multiple_districts(self) -> None:
        with pytest.raises(ValidationError, match="more than one district"):
            MultiDistrictMapping(
                **_base(),
                districts=DistrictSet(congressional=(30,), state_senate=(24,), state_assembly=(51,)),
                primary_districts=PrimaryDistricts(congressional=30, state_senate=24, state_assembly=51),
            )

    def test_district_numbers(self) -> None:
        mapping = _multi()
        assert mapping.district_numbers(DistrictCategory.CONGRESSIONAL) == (30, 32)
        assert mapping.primary().congressional == 30

    def test_collapse(self) -> None:
        collapsed = _multi().collapse()
        assert isinstance(collapsed, SingleDistrictMapping)
        assert collapsed.congressional_district == 30
        assert collapsed.zip_code == "90210"
        assert collapsed.source == DistrictSource.PROVIDER


class TestDiscriminatedUnion:
    def test_round_trip_through_adapter(self) -> None:
        data = _multi().model_dump(mode="json", by_alias=True)
        restored = district_mapping_adapter.validate_python(data)
        assert isinstance(restored, MultiDistrictMapping)
        assert restored.districts.congressional == (30, 32)

    def test_unknown_kind_rejected(self) -> None:
        data = _single().model_dump(mode="json", by_alias=True)
        data["kind"] = "triple"
        with pytest.raises(ValidationError):
            district_mapping_adapter.validate_python(data)

    def test_cache_entry_serialization(self) -> None:
        entry = CacheEntry(zip_code="90210", mapping=_single(), expires_at=NOW, cached_at=NOW)
        data = entry.model_dump(mode="json", by_alias=True)
        assert set(data) == {"zipCode", "mapping", "expiresAt", "cachedAt"}
        assert CacheEntry.model_validate(data).mapping == _single()
