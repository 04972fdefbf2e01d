"""Officials library: pluggable representative lookup.

Public API:
    - RepresentativeRecord: Normalized dataclass for an office holder
    - RepresentativeQuery: Level/chamber/district query
    - BaseRepresentativeProvider: Abstract provider interface
    - RepresentativeProviderError: Provider-level error
    - DistrictOfficeProvider: Deterministic office-seat provider
    - get_provider: Provider factory/registry
"""

from typing import Any

from loguru import logger

from district_lookup.lib.officials.base import (
    BaseRepresentativeProvider,
    Chamber,
    RepresentativeLevel,
    RepresentativeProviderError,
    RepresentativeQuery,
    RepresentativeRecord,
)
from district_lookup.lib.officials.district_offices import DistrictOfficeProvider

_PROVIDERS: dict[str, type[BaseRepresentativeProvider]] = {
    "district_offices": DistrictOfficeProvider,
}


def get_provider(name: str = "district_offices", **kwargs: Any) -> BaseRepresentativeProvider:
    """Get a representative-provider instance by name.

    Args:
        name: Provider name.
        **kwargs: Additional arguments forwarded to the provider constructor.

    Returns:
        An instance of the requested provider.

    Raises:
        ValueError: If the provider is not registered.
    """
    cls = _PROVIDERS.get(name)
    if cls is None:
        msg = f"Unknown representative provider: {name!r}. Available: {list(_PROVIDERS.keys())}"
        raise ValueError(msg)
    return cls(**kwargs)


def register_provider(name: str, cls: type[BaseRepresentativeProvider]) -> None:
    """Register a provider class in the global registry.

    Args:
        name: Short name for the provider.
        cls: Provider class (must subclass BaseRepresentativeProvider).
    """
    if name in _PROVIDERS:
        logger.warning(f"Overwriting existing representative provider {name!r}")
    _PROVIDERS[name] = cls


__all__ = [
    "BaseRepresentativeProvider",
    "Chamber",
    "DistrictOfficeProvider",
    "RepresentativeLevel",
    "RepresentativeProviderError",
    "RepresentativeQuery",
    "RepresentativeRecord",
    "get_provider",
    "register_provider",
]
