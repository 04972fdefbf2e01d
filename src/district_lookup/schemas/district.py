"""Pydantic v2 schemas for ZIP-to-district mappings and cache entries.

A mapping is an explicit tagged union on ``kind``: ``single`` when every
district category resolved to one number, ``multi`` when any category
resolved to more than one.
"""

from datetime import datetime
from enum import StrEnum
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, model_validator
from pydantic.alias_generators import to_camel


class DistrictSource(StrEnum):
    """Where a mapping came from."""

    PROVIDER = "provider"
    FALLBACK = "fallback"
    FALLBACK_WITH_LOCAL = "fallback_with_local"


class DistrictCategory(StrEnum):
    """District categories tracked for every ZIP code."""

    CONGRESSIONAL = "congressional"
    STATE_SENATE = "state_senate"
    STATE_ASSEMBLY = "state_assembly"


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )


class PrimaryDistricts(_CamelModel):
    """One representative district number per category."""

    congressional: int
    state_senate: int
    state_assembly: int

    def for_category(self, category: DistrictCategory) -> int:
        return getattr(self, category.value)


class DistrictSet(_CamelModel):
    """All distinct district numbers per category, in provider order."""

    congressional: tuple[int, ...] = ()
    state_senate: tuple[int, ...] = ()
    state_assembly: tuple[int, ...] = ()

    def for_category(self, category: DistrictCategory) -> tuple[int, ...]:
        return getattr(self, category.value)

    @property
    def spans_multiple(self) -> bool:
        return any(len(set(self.for_category(c))) > 1 for c in DistrictCategory)


class _MappingBase(_CamelModel):
    zip_code: str
    county: str
    city: str
    state: str
    coordinates: tuple[float, float] = Field(description="(longitude, latitude)")
    accuracy: float = Field(ge=0, le=1)
    source: DistrictSource
    last_updated: datetime

    @property
    def longitude(self) -> float:
        return self.coordinates[0]

    @property
    def latitude(self) -> float:
        return self.coordinates[1]

    @property
    def is_fallback(self) -> bool:
        """Whether consumers should show a low-confidence location notice."""
        return self.source != DistrictSource.PROVIDER


class SingleDistrictMapping(_MappingBase):
    """ZIP code covered by exactly one district per category."""

    kind: Literal["single"] = "single"
    congressional_district: int
    state_senate_district: int
    state_assembly_district: int

    def primary(self) -> PrimaryDistricts:
        return PrimaryDistricts(
            congressional=self.congressional_district,
            state_senate=self.state_senate_district,
            state_assembly=self.state_assembly_district,
        )

    def district_numbers(self, category: DistrictCategory) -> tuple[int, ...]:
        return (self.primary().for_category(category),)


class MultiDistrictMapping(_MappingBase):
    """ZIP code split across more than one district in at least one category."""

    kind: Literal["multi"] = "multi"
    districts: DistrictSet
    primary_districts: PrimaryDistricts

    @model_validator(mode="after")
    def _check_spans_multiple(self) -> "MultiDistrictMapping":
        if not self.districts.spans_multiple:
            msg = "multi-district mapping requires a category with more than one district"
            raise ValueError(msg)
        return self

    def primary(self) -> PrimaryDistricts:
        return self.primary_districts

    def district_numbers(self, category: DistrictCategory) -> tuple[int, ...]:
        return self.districts.for_category(category)

    def collapse(self) -> SingleDistrictMapping:
        """Reduce to a single-district mapping of the primary districts."""
        base = self.model_dump(exclude={"kind", "districts", "primary_districts"})
        return SingleDistrictMapping(
            **base,
            congressional_district=self.primary_districts.congressional,
            state_senate_district=self.primary_districts.state_senate,
            state_assembly_district=self.primary_districts.state_assembly,
        )


DistrictMapping = Annotated[SingleDistrictMapping | MultiDistrictMapping, Field(discriminator="kind")]

district_mapping_adapter: TypeAdapter[SingleDistrictMapping | MultiDistrictMapping] = TypeAdapter(DistrictMapping)


class CacheEntry(_CamelModel):
    """Persisted cache record for one ZIP code."""

    zip_code: str
    mapping: DistrictMapping
    expires_at: datetime
    cached_at: datetime
