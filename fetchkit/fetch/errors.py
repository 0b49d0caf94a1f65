"""Error types for the fetch layer."""

from enum import Enum


class FetchErrorClass(str, Enum):
    """Classification of fetch errors for metrics and retry decisions.

    - INVALID_URL: Request could not be composed into a valid URI
    - NETWORK: No HTTP response was obtainable
    - HTTP_STATUS: Response status outside 200-299
    - DECODING: Response body did not match the expected shape
    - UNKNOWN: Unclassified error
    """

    INVALID_URL = "INVALID_URL"
    NETWORK = "NETWORK"
    HTTP_STATUS = "HTTP_STATUS"
    DECODING = "DECODING"
    UNKNOWN = "UNKNOWN"


class FetchError(Exception):
    """Base exception for fetch errors.

    Provides structured error information for logging and retry decisions.
    """

    def __init__(
        self,
        error_class: FetchErrorClass,
        message: str,
        details: dict[str, str | int | None] | None = None,
    ) -> None:
        """Initialize the fetch error.

        Args:
            error_class: Classification of the error.
            message: Human-readable error message.
            details: Additional structured error details.
        """
        super().__init__(message)
        self.error_class = error_class
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, str | dict[str, str | int | None]]:
        """Convert error to dictionary for logging/serialization.

        Returns:
            Dictionary representation of the error.
        """
        return {
            "error_class": self.error_class.value,
            "message": self.message,
            "details": self.details,
        }


class InvalidURLError(FetchError):
    """Raised when a request cannot be composed into a valid URI."""

    def __init__(self, url: str, reason: str | None = None) -> None:
        """Initialize the error.

        Args:
            url: The URL (or URL fragment) that was rejected.
            reason: Why the URL was rejected.
        """
        super().__init__(
            error_class=FetchErrorClass.INVALID_URL,
            message="The URL provided was invalid.",
            details={"url": url, "reason": reason},
        )
        self.url = url
        self.reason = reason


class NetworkError(FetchError):
    """Raised when no HTTP response could be obtained."""

    def __init__(self, detail: str | None = None) -> None:
        """Initialize the error.

        Args:
            detail: Description of the underlying connectivity failure.
        """
        super().__init__(
            error_class=FetchErrorClass.NETWORK,
            message="There was a network error.",
            details={"detail": detail},
        )
        self.detail = detail


class HTTPStatusError(FetchError):
    """Raised when the response status is outside the 2xx range."""

    def __init__(self, status_code: int, description: str) -> None:
        """Initialize the error.

        Args:
            status_code: HTTP status code of the response.
            description: Reason phrase for the status code.
        """
        super().__init__(
            error_class=FetchErrorClass.HTTP_STATUS,
            message=(
                f"HTTP request failed with status code {status_code}: {description}."
            ),
            details={"status_code": status_code, "description": description},
        )
        self.status_code = status_code
        self.description = description


class DecodingError(FetchError):
    """Raised when the response body cannot be decoded into the target type."""

    def __init__(self, underlying: BaseException) -> None:
        """Initialize the error.

        Args:
            underlying: The exception raised by the decoder.
        """
        super().__init__(
            error_class=FetchErrorClass.DECODING,
            message=f"Failed to decode the response: {underlying}.",
            details={"underlying_type": type(underlying).__name__},
        )
        self.underlying = underlying


class UnknownFetchError(FetchError):
    """Raised for failures that fit no other class."""

    def __init__(self, detail: str | None = None) -> None:
        """Initialize the error.

        Args:
            detail: Description of the unexpected failure.
        """
        super().__init__(
            error_class=FetchErrorClass.UNKNOWN,
            message="An unknown error has occurred.",
            details={"detail": detail},
        )
        self.detail = detail
