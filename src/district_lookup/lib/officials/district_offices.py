"""Deterministic office-seat provider.

Describes the seats that represent a district without naming the people
who hold them, so every resolved mapping gets a stable set of
representative rows with no network access.
"""

from district_lookup.lib.coverage.states import STATE_NAMES
from district_lookup.lib.districts.geocodio import UNKNOWN_CITY, UNKNOWN_COUNTY
from district_lookup.lib.officials.base import (
    BaseRepresentativeProvider,
    Chamber,
    RepresentativeLevel,
    RepresentativeProviderError,
    RepresentativeQuery,
    RepresentativeRecord,
)

HOUSE_WEBSITE = "https://www.house.gov/representatives/find-your-representative"
SENATE_WEBSITE = "https://www.senate.gov/senators/senators-contact.htm"

# State legislature contact details, keyed by state code
STATE_LEGISLATURE_CONTACTS: dict[str, dict[Chamber, dict[str, str]]] = {
    "CA": {
        Chamber.SENATE: {"website": "https://www.senate.ca.gov", "phone": "(916) 651-4171"},
        Chamber.ASSEMBLY: {"website": "https://www.assembly.ca.gov", "phone": "(916) 319-2856"},
    },
}


def _slug(value: str) -> str:
    return "-".join(value.lower().replace(".", "").split())


class DistrictOfficeProvider(BaseRepresentativeProvider):
    """Office-seat records derived from district numbers and place names."""

    @property
    def provider_name(self) -> str:
        return "district_offices"

    async def fetch(self, query: RepresentativeQuery) -> list[RepresentativeRecord]:
        level, chamber = query.level, query.chamber
        if level == RepresentativeLevel.FEDERAL and chamber == Chamber.HOUSE:
            return [self._house_seat(query)]
        if level == RepresentativeLevel.FEDERAL and chamber == Chamber.SENATE:
            return self._senate_seats(query)
        if level == RepresentativeLevel.STATE and chamber in (Chamber.SENATE, Chamber.ASSEMBLY):
            return [self._state_seat(query)]
        if level == RepresentativeLevel.COUNTY and chamber == Chamber.COUNTY_BOARD:
            return self._county_seat(query)
        if level == RepresentativeLevel.LOCAL and chamber == Chamber.EXECUTIVE:
            return self._mayor_seat(query)
        msg = f"Unsupported query: {query.level} {query.chamber}"
        raise RepresentativeProviderError(self.provider_name, msg)

    def _require_district(self, query: RepresentativeQuery) -> int:
        if query.district_number is None or query.district_number < 1:
            msg = f"{query.level} {query.chamber} lookup requires a positive district number"
            raise RepresentativeProviderError(self.provider_name, msg)
        return query.district_number

    def _house_seat(self, query: RepresentativeQuery) -> RepresentativeRecord:
        number = self._require_district(query)
        state = STATE_NAMES.get(query.state, query.state)
        return RepresentativeRecord(
            id=f"{query.state.lower()}-house-{number}",
            name=f"U.S. Representative for {state}'s District {number}",
            title="U.S. Representative",
            level=RepresentativeLevel.FEDERAL,
            chamber=Chamber.HOUSE,
            state=query.state,
            district=f"{query.state}-{number}",
            district_number=number,
            website=HOUSE_WEBSITE,
        )

    def _senate_seats(self, query: RepresentativeQuery) -> list[RepresentativeRecord]:
        state = STATE_NAMES.get(query.state, query.state)
        return [
            RepresentativeRecord(
                id=f"{query.state.lower()}-senate-{seat}",
                name=f"U.S. Senator for {state} (seat {seat})",
                title="U.S. Senator",
                level=RepresentativeLevel.FEDERAL,
                chamber=Chamber.SENATE,
                state=query.state,
                district=query.state,
                website=SENATE_WEBSITE,
            )
            for seat in (1, 2)
        ]

    def _state_seat(self, query: RepresentativeQuery) -> RepresentativeRecord:
        number = self._require_district(query)
        contact = STATE_LEGISLATURE_CONTACTS.get(query.state, {}).get(query.chamber, {})
        if query.chamber == Chamber.SENATE:
            title, label = "State Senator", "Senate District"
        else:
            title, label = "Assembly Member", "Assembly District"
        return RepresentativeRecord(
            id=f"{query.state.lower()}-{query.chamber}-{number}",
            name=f"{title}, {label} {number}",
            title=title,
            level=RepresentativeLevel.STATE,
            chamber=query.chamber,
            state=query.state,
            district=f"{label} {number}",
            district_number=number,
            phone=contact.get("phone"),
            website=contact.get("website"),
        )

    def _county_seat(self, query: RepresentativeQuery) -> list[RepresentativeRecord]:
        county = query.jurisdiction
        if not county or county == UNKNOWN_COUNTY:
            return []
        return [
            RepresentativeRecord(
                id=f"{query.state.lower()}-county-{_slug(county)}",
                name=f"{county} Board of Supervisors",
                title="County Supervisor",
                level=RepresentativeLevel.COUNTY,
                chamber=Chamber.COUNTY_BOARD,
                state=query.state,
                district=county,
                jurisdictions=[county],
            ),
        ]

    def _mayor_seat(self, query: RepresentativeQuery) -> list[RepresentativeRecord]:
        city = query.jurisdiction
        if not city or city == UNKNOWN_CITY:
            return []
        return [
            RepresentativeRecord(
                id=f"{query.state.lower()}-mayor-{_slug(city)}",
                name=f"Mayor of {city}",
                title="Mayor",
                level=RepresentativeLevel.LOCAL,
                chamber=Chamber.EXECUTIVE,
                state=query.state,
                district=city,
                jurisdictions=[city],
            ),
        ]
