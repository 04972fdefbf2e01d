"""Pydantic v2 schemas for batch export snapshots."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from district_lookup.schemas.district import DistrictMapping


class _ExportModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)


class ExportedRepresentative(_ExportModel):
    """Representative row trimmed to the exported fields."""

    id: str
    name: str
    title: str
    level: str
    chamber: str
    district: str | None = None
    party: str | None = None


class ExportMetadata(_ExportModel):
    export_date: datetime
    total_zip_codes: int
    successful_mappings: int
    failed_mappings: int


class ExportedZipMapping(_ExportModel):
    """One batch result. ``districts`` and ``representatives`` are null on failure."""

    zip_code: str
    success: bool
    processing_time: float = Field(description="Processing time in milliseconds")
    districts: DistrictMapping | None = None
    representatives: list[ExportedRepresentative] | None = None
    error: str | None = None


class ExportSnapshot(_ExportModel):
    metadata: ExportMetadata
    zip_code_mappings: list[ExportedZipMapping]
