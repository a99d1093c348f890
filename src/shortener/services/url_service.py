from collections.abc import Callable
import uuid

from pydantic import AnyUrl, TypeAdapter, ValidationError

from src.shortener.core.config import logger
from src.shortener.core.exceptions import (
    CodeAllocationExhaustedError,
    DuplicateCodeError,
    InvalidIdentifierError,
    InvalidURLError,
)
from src.shortener.services.code_generator import CODE_LENGTH, generate_code
from src.shortener.stores.base import MappingStore, URLMapping

DEFAULT_ALLOCATION_ATTEMPTS = 5

_absolute_url = TypeAdapter(AnyUrl)


def validate_url(original_url: str) -> str:
    """
    Check that a URL is absolute and well-formed.

    Only the syntax is checked; the URL is never fetched. The input is returned
    unchanged so the stored URL is exactly what the client sent.

    Raises:
        InvalidURLError: If the URL is empty, relative or unparseable
    """
    if not isinstance(original_url, str) or not original_url.strip():
        raise InvalidURLError("URL must be a non-empty string")
    # The URL parser silently drops tab, CR and LF, so they are rejected up front.
    if any(char.isspace() or ord(char) < 0x20 or char == "\x7f" for char in original_url):
        raise InvalidURLError("URL must not contain whitespace or control characters")
    try:
        _absolute_url.validate_python(original_url)
    except ValidationError as e:
        raise InvalidURLError(f"Invalid URL: {original_url}") from e
    return original_url


def validate_identifier(identifier: str) -> str:
    """Return the canonical form of a UUID identifier or raise InvalidIdentifierError."""
    try:
        return str(uuid.UUID(identifier))
    except (TypeError, ValueError, AttributeError) as e:
        raise InvalidIdentifierError(f"Malformed id: {identifier}") from e


class URLService:
    """
    Shortens, resolves and deletes URL mappings against a MappingStore.

    The service holds no mutable state; a single instance is shared across
    concurrent requests.
    """

    def __init__(
        self,
        store: MappingStore,
        code_length: int = CODE_LENGTH,
        max_attempts: int = DEFAULT_ALLOCATION_ATTEMPTS,
        code_generator: Callable[[int], str] = generate_code,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.store = store
        self.code_length = code_length
        self.max_attempts = max_attempts
        self.code_generator = code_generator

    def shorten(self, original_url: str) -> URLMapping:
        """
        Create a mapping for a URL under a freshly generated code.

        A code already taken in the store is replaced by a new random one, up
        to ``max_attempts`` tries in total.

        Raises:
            InvalidURLError: If the URL is not a valid absolute URL
            CodeAllocationExhaustedError: If every attempt collided
            RandomSourceError: If the secure random source fails
            StoreUnavailableError: If the store cannot be reached
        """
        original_url = validate_url(original_url)

        for attempt in range(1, self.max_attempts + 1):
            code = self.code_generator(self.code_length)
            try:
                mapping = self.store.create(URLMapping(code=code, original_url=original_url))
            except DuplicateCodeError:
                logger.warning(f"Code collision on attempt {attempt}/{self.max_attempts}: {code}")
                continue

            logger.info(f"Created short URL {mapping.code} -> {mapping.original_url} (id={mapping.id})")
            return mapping

        logger.error(f"Could not allocate a free code after {self.max_attempts} attempts")
        raise CodeAllocationExhaustedError(
            f"Could not allocate a free code after {self.max_attempts} attempts"
        )

    def resolve(self, code: str) -> URLMapping:
        return self.store.get_by_code(code)

    def get(self, identifier: str) -> URLMapping:
        return self.store.get_by_identifier(validate_identifier(identifier))

    def delete(self, identifier: str) -> None:
        identifier = validate_identifier(identifier)
        self.store.delete(identifier)
        logger.info(f"Deleted short URL id={identifier}")

    def ping(self) -> None:
        self.store.ping()
