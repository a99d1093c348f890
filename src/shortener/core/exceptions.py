class ShortenerError(Exception):
    """Base exception for all application-specific errors."""

    error_code = "app:shortener_error"


class InvalidURLError(ShortenerError):
    """Raised when a submitted URL is not a well-formed absolute URL."""

    error_code = "input:invalid_url"


class InvalidIdentifierError(ShortenerError):
    """Raised when a mapping identifier is not a valid UUID string."""

    error_code = "input:invalid_identifier"


class NotFoundError(ShortenerError):
    """Raised when no mapping matches the requested code or identifier."""

    error_code = "store:not_found"


class DuplicateCodeError(ShortenerError):
    """Raised by a store when the code of a new mapping is already taken."""

    error_code = "store:duplicate_code"


class StoreUnavailableError(ShortenerError):
    """Raised when the backing store cannot be reached.

    Examples include refused connections, dropped connections and an
    exhausted connection pool.
    """

    error_code = "store:unavailable"


class StoreTimeoutError(StoreUnavailableError):
    """Raised when a store call does not finish within the request deadline."""

    error_code = "store:timeout"


class CodeAllocationExhaustedError(ShortenerError):
    """Raised when every attempt to allocate a free code collided."""

    error_code = "service:code_allocation_exhausted"


class RandomSourceError(ShortenerError):
    """Raised when the operating system entropy source fails."""

    error_code = "service:random_source_error"
