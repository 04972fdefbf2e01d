"""District provider interface, lookup options, ZIP validation and error taxonomy."""

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import timedelta
from typing import Any

_ZIP_PATTERN = re.compile(r"[0-9]{5}(-[0-9]{4})?")


@dataclass(frozen=True)
class LookupOptions:
    """Per-call options for :meth:`DistrictResolver.resolve`.

    Attributes:
        use_cache: Read the cache before calling the provider.
        allow_multi_district: Return a multi-district mapping when the ZIP
            spans districts; otherwise collapse it to its primaries.
        include_fallback: Fall back to stale cache, local data and the
            region default instead of raising.
        max_age: Override for the maximum age of a cache hit.
    """

    use_cache: bool = True
    allow_multi_district: bool = True
    include_fallback: bool = True
    max_age: timedelta | None = None


class DistrictLookupError(Exception):
    """Base class for district resolution failures.

    Args:
        message: Human-readable error description.
        zip_code: The ZIP code being resolved, when known.
    """

    code = "UNKNOWN_ERROR"

    def __init__(self, message: str, zip_code: str | None = None) -> None:
        self.message = message
        self.zip_code = zip_code
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the error response shape used by API consumers."""
        payload: dict[str, Any] = {"error": self.code, "message": self.message}
        if self.zip_code is not None:
            payload["zipCode"] = self.zip_code
        retry_after = getattr(self, "retry_after", None)
        if retry_after is not None:
            payload["retryAfter"] = retry_after
        return payload


class InvalidZipFormatError(DistrictLookupError):
    """Input is not a 5-digit ZIP (optionally ZIP+4). Never retried."""

    code = "INVALID_ZIP_FORMAT"


class ZipNotFoundError(DistrictLookupError):
    """Provider answered but returned no results for the ZIP code."""

    code = "ZIP_NOT_FOUND"


class DistrictNetworkError(DistrictLookupError):
    """Transport or upstream service failure talking to the provider.

    Args:
        message: Human-readable error description.
        zip_code: The ZIP code being resolved.
        status_code: HTTP status code, when the provider responded.
        retryable: Whether another attempt may succeed.
    """

    code = "NETWORK_ERROR"

    def __init__(
        self,
        message: str,
        zip_code: str | None = None,
        *,
        status_code: int | None = None,
        retryable: bool = True,
    ) -> None:
        super().__init__(message, zip_code)
        self.status_code = status_code
        self.retryable = retryable


class ProviderTimeoutError(DistrictNetworkError):
    """Provider request exceeded its timeout."""

    code = "TIMEOUT"


class ApiLimitExceededError(DistrictLookupError):
    """Request quota exhausted, locally or at the provider."""

    code = "API_LIMIT_EXCEEDED"

    def __init__(self, message: str, zip_code: str | None = None, *, retry_after: float | None = None) -> None:
        super().__init__(message, zip_code)
        self.retry_after = retry_after


class ProviderRateLimitedError(ApiLimitExceededError):
    """Provider answered HTTP 429."""


class InvalidApiKeyError(DistrictLookupError):
    """Provider credentials are missing or were rejected."""

    code = "INVALID_API_KEY"


class ProviderResponseError(DistrictLookupError):
    """Provider returned a payload that could not be interpreted."""

    code = "PROVIDER_RESPONSE_ERROR"


def is_valid_zip(zip_code: object) -> bool:
    """Whether ``zip_code`` is a 5-digit ZIP or ZIP+4 string."""
    return isinstance(zip_code, str) and _ZIP_PATTERN.fullmatch(zip_code) is not None


def normalize_zip(zip_code: object) -> str:
    """Validate a ZIP code and return its 5-digit form.

    Args:
        zip_code: Raw ZIP code, ``NNNNN`` or ``NNNNN-NNNN``.

    Returns:
        The 5-digit ZIP code.

    Raises:
        InvalidZipFormatError: If the input is not a well-formed ZIP code.
    """
    if not is_valid_zip(zip_code):
        shown = zip_code if isinstance(zip_code, str) else repr(zip_code)
        msg = "Invalid ZIP code format. Expected 5 digits, optionally followed by -NNNN."
        raise InvalidZipFormatError(msg, shown)
    return zip_code[:5]  # type: ignore[index]


class BaseDistrictProvider(ABC):
    """Abstract district data provider. All providers must implement this."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Unique name identifying this provider."""

    @property
    def is_configured(self) -> bool:
        """Whether this provider has all required configuration (e.g., API keys)."""
        return True

    @abstractmethod
    async def fetch(self, zip_code: str) -> list[dict[str, Any]]:
        """Fetch raw district results for one ZIP code (single attempt, no retry).

        Args:
            zip_code: Normalized 5-digit ZIP code.

        Returns:
            Provider result objects; an empty list when the ZIP is unknown.

        Raises:
            ProviderRateLimitedError: On HTTP 429.
            ProviderTimeoutError: When the request times out.
            DistrictNetworkError: On transport or HTTP errors.
            InvalidApiKeyError: When credentials are rejected.
            ProviderResponseError: On an unparseable payload.
        """
