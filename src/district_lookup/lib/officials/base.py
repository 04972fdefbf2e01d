"""Abstract base interface for representative-lookup providers."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import StrEnum


class RepresentativeLevel(StrEnum):
    FEDERAL = "federal"
    STATE = "state"
    COUNTY = "county"
    LOCAL = "local"


class Chamber(StrEnum):
    HOUSE = "house"
    SENATE = "senate"
    ASSEMBLY = "assembly"
    COUNTY_BOARD = "county_board"
    EXECUTIVE = "executive"


@dataclass
class RepresentativeRecord:
    """Normalized office holder from any provider.

    Providers parse their raw responses into this common shape so the
    service layer can attach representatives to a mapping without knowing
    provider details.
    """

    # Identification
    id: str
    name: str
    title: str

    # Office
    level: RepresentativeLevel
    chamber: Chamber
    state: str
    district: str | None = None
    district_number: int | None = None
    jurisdictions: list[str] = field(default_factory=list)

    # Optional details
    party: str | None = None
    phone: str | None = None
    email: str | None = None
    website: str | None = None


@dataclass(frozen=True)
class RepresentativeQuery:
    """Which seats to look up.

    Attributes:
        level: Level of government.
        chamber: Chamber or office type within the level.
        state: Two-letter state code.
        district_number: District number for districted seats.
        jurisdiction: County or city name for county and local seats.
    """

    level: RepresentativeLevel
    chamber: Chamber
    state: str
    district_number: int | None = None
    jurisdiction: str | None = None


class RepresentativeProviderError(Exception):
    """Raised when a provider cannot answer a query.

    Args:
        provider_name: Name of the failing provider.
        message: Human-readable error description.
        status_code: Optional HTTP status code from the provider.
    """

    def __init__(self, provider_name: str, message: str, status_code: int | None = None) -> None:
        self.provider_name = provider_name
        self.message = message
        self.status_code = status_code
        super().__init__(f"{provider_name}: {message}")


class BaseRepresentativeProvider(ABC):
    """Abstract interface for representative-lookup providers."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Unique short name for this provider (e.g. 'district_offices')."""

    @abstractmethod
    async def fetch(self, query: RepresentativeQuery) -> list[RepresentativeRecord]:
        """Fetch the office holders matching a query.

        Args:
            query: Level, chamber and district or jurisdiction to look up.

        Returns:
            List of normalized representative records (possibly empty).

        Raises:
            RepresentativeProviderError: If the provider cannot answer.
        """
