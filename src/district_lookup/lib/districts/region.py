"""Supported-region bounding box, centre point and district-number limits."""

from dataclasses import dataclass

from district_lookup.schemas.district import DistrictCategory


@dataclass(frozen=True)
class RegionProfile:
    """Static facts about the state the resolver serves."""

    state: str
    name: str
    min_lat: float
    max_lat: float
    min_lng: float
    max_lng: float
    center: tuple[float, float]
    district_limits: dict[DistrictCategory, int]
    zip_prefix_range: tuple[int, int]

    def contains(self, lng: float, lat: float) -> bool:
        """Whether a point falls inside the region's bounding box."""
        return self.min_lat <= lat <= self.max_lat and self.min_lng <= lng <= self.max_lng

    def district_in_range(self, category: DistrictCategory, number: int) -> bool:
        return 1 <= number <= self.district_limits[category]

    def clamp_district(self, category: DistrictCategory, number: int) -> int:
        return min(max(number, 1), self.district_limits[category])

    def owns_zip_prefix(self, zip_code: str) -> bool:
        """Whether the ZIP's 3-digit prefix is inside the region's assigned range."""
        low, high = self.zip_prefix_range
        return low <= int(zip_code[:3]) <= high


# California approximate bounding box (WGS84)
CALIFORNIA = RegionProfile(
    state="CA",
    name="California",
    min_lat=32.5,
    max_lat=42.0,
    min_lng=-124.4,
    max_lng=-114.1,
    center=(-119.4179, 36.7783),
    district_limits={
        DistrictCategory.CONGRESSIONAL: 52,
        DistrictCategory.STATE_SENATE: 40,
        DistrictCategory.STATE_ASSEMBLY: 80,
    },
    zip_prefix_range=(900, 961),
)


def validate_region_coordinates(lng: float, lat: float, region: RegionProfile = CALIFORNIA) -> None:
    """Validate that coordinates fall within the service area.

    Args:
        lng: WGS84 longitude.
        lat: WGS84 latitude.
        region: Region to check against.

    Raises:
        ValueError: If coordinates are outside the region's bounding box.
    """
    if not region.contains(lng, lat):
        msg = f"Coordinates are outside the {region.name} service area."
        raise ValueError(msg)
