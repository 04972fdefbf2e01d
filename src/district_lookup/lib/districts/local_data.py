"""Static California ZIP data for offline fallback and batch enumeration.

The known-ZIP table carries district assignments for frequently requested
codes; the prefix table gives a coarse per-area answer for everything else.
Both are approximations and are marked with reduced accuracy when used.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class KnownZip:
    """District assignment for a specific ZIP code."""

    zip_code: str
    city: str
    county: str
    congressional: int
    state_senate: int
    state_assembly: int
    coordinates: tuple[float, float]


@dataclass(frozen=True)
class PrefixArea:
    """Coarse district assignment for a range of 3-digit ZIP prefixes."""

    low: int
    high: int
    city: str
    county: str
    congressional: int
    state_senate: int
    state_assembly: int
    coordinates: tuple[float, float]

    def covers(self, prefix: int) -> bool:
        return self.low <= prefix <= self.high


KNOWN_ZIPS: dict[str, KnownZip] = {
    z.zip_code: z
    for z in (
        # Los Angeles area
        KnownZip("90210", "Beverly Hills", "Los Angeles County", 30, 24, 51, (-118.4065, 34.0901)),
        KnownZip("90211", "Beverly Hills", "Los Angeles County", 30, 24, 51, (-118.3830, 34.0652)),
        KnownZip("90001", "Los Angeles", "Los Angeles County", 44, 35, 64, (-118.2479, 33.9731)),
        KnownZip("91101", "Pasadena", "Los Angeles County", 28, 25, 41, (-118.1390, 34.1466)),
        # San Francisco
        KnownZip("94102", "San Francisco", "San Francisco County", 11, 11, 17, (-122.4169, 37.7795)),
        KnownZip("94103", "San Francisco", "San Francisco County", 11, 11, 17, (-122.4114, 37.7725)),
        KnownZip("94104", "San Francisco", "San Francisco County", 11, 11, 17, (-122.4022, 37.7915)),
        # San Jose
        KnownZip("95110", "San Jose", "Santa Clara County", 16, 15, 25, (-121.9025, 37.3414)),
        KnownZip("95111", "San Jose", "Santa Clara County", 16, 15, 25, (-121.8273, 37.2843)),
        # Sacramento
        KnownZip("95814", "Sacramento", "Sacramento County", 7, 8, 7, (-121.4944, 38.5804)),
        KnownZip("95815", "Sacramento", "Sacramento County", 7, 8, 7, (-121.4447, 38.6093)),
        # San Diego
        KnownZip("92101", "San Diego", "San Diego County", 50, 39, 78, (-117.1611, 32.7190)),
        KnownZip("92102", "San Diego", "San Diego County", 51, 39, 79, (-117.1160, 32.7155)),
    )
}

PREFIX_AREAS: tuple[PrefixArea, ...] = (
    PrefixArea(900, 904, "Los Angeles Area", "Los Angeles County", 37, 28, 57, (-118.2437, 34.0522)),
    PrefixArea(905, 908, "Long Beach Area", "Los Angeles County", 42, 33, 69, (-118.1937, 33.7701)),
    PrefixArea(910, 912, "Pasadena Area", "Los Angeles County", 28, 25, 41, (-118.1445, 34.1478)),
    PrefixArea(913, 916, "San Fernando Valley", "Los Angeles County", 32, 27, 46, (-118.4487, 34.1808)),
    PrefixArea(917, 918, "San Gabriel Valley", "Los Angeles County", 31, 22, 48, (-117.9143, 34.0686)),
    PrefixArea(919, 921, "San Diego Area", "San Diego County", 50, 39, 78, (-117.1611, 32.7157)),
    PrefixArea(922, 925, "Inland Empire", "Riverside County", 39, 31, 58, (-117.3962, 33.9533)),
    PrefixArea(926, 928, "Orange County", "Orange County", 47, 37, 73, (-117.8311, 33.7175)),
    PrefixArea(930, 935, "Central Coast", "Kern County", 20, 16, 32, (-119.0187, 35.3733)),
    PrefixArea(936, 938, "Fresno Area", "Fresno County", 21, 14, 31, (-119.7871, 36.7378)),
    PrefixArea(939, 939, "Salinas Area", "Monterey County", 18, 17, 29, (-121.6555, 36.6777)),
    PrefixArea(940, 941, "San Francisco Area", "San Francisco County", 11, 11, 17, (-122.4194, 37.7749)),
    PrefixArea(942, 942, "Sacramento Area", "Sacramento County", 7, 8, 7, (-121.4944, 38.5816)),
    PrefixArea(943, 944, "Peninsula", "San Mateo County", 15, 13, 21, (-122.3255, 37.5630)),
    PrefixArea(945, 948, "East Bay", "Alameda County", 12, 7, 18, (-122.2711, 37.8044)),
    PrefixArea(949, 949, "Marin Area", "Marin County", 2, 2, 12, (-122.5311, 38.0834)),
    PrefixArea(950, 951, "San Jose Area", "Santa Clara County", 16, 15, 25, (-121.8863, 37.3382)),
    PrefixArea(952, 953, "Central Valley North", "San Joaquin County", 9, 5, 13, (-121.2908, 37.9577)),
    PrefixArea(954, 955, "North Coast", "Sonoma County", 4, 3, 2, (-122.7141, 38.4404)),
    PrefixArea(956, 958, "Sacramento Area", "Sacramento County", 7, 8, 7, (-121.4944, 38.5816)),
    PrefixArea(959, 961, "Northern California", "Shasta County", 1, 1, 1, (-122.3917, 40.5865)),
)

# Representative sample of codes from the major counties, always processed in full runs
KNOWN_SAMPLE_ZIP_CODES: tuple[str, ...] = (
    # Los Angeles County
    "90210", "90211", "90212", "90213", "90214", "90215",
    "90001", "90002", "90003", "90004", "90005", "90006",
    "91101", "91102", "91103", "91104", "91105", "91106",
    # San Francisco County
    "94101", "94102", "94103", "94104", "94105", "94106",
    "94107", "94108", "94109", "94110", "94111", "94112",
    # Orange County
    "92602", "92603", "92604", "92605", "92606", "92607",
    "92801", "92802", "92803", "92804", "92805", "92806",
    # San Diego County
    "92101", "92102", "92103", "92104", "92105", "92106",
    "92107", "92108", "92109", "92110", "92111", "92112",
    # Sacramento County
    "95814", "95815", "95816", "95817", "95818", "95819",
    "95820", "95821", "95822", "95823", "95824", "95825",
)  # fmt: skip


def find_prefix_area(zip_code: str) -> PrefixArea | None:
    """Return the prefix area covering a 5-digit ZIP, if any."""
    prefix = int(zip_code[:3])
    for area in PREFIX_AREAS:
        if area.covers(prefix):
            return area
    return None


def generate_prefix_range(low: int, high: int) -> list[str]:
    """Every 5-digit code whose 3-digit prefix is in ``[low, high]``.

    This is a heuristic superset: many generated codes are unassigned.
    """
    return [f"{prefix:03d}{suffix:02d}" for prefix in range(low, high + 1) for suffix in range(100)]


def supported_zip_codes(prefix_range: tuple[int, int] = (900, 961)) -> list[str]:
    """Enumerate the ZIP universe for full batch runs.

    Args:
        prefix_range: Inclusive 3-digit prefix range to generate.

    Returns:
        Sorted, de-duplicated union of the generated range, the known-ZIP
        table and the sample codes.
    """
    codes = set(generate_prefix_range(*prefix_range))
    codes.update(KNOWN_ZIPS)
    codes.update(KNOWN_SAMPLE_ZIP_CODES)
    return sorted(codes)
