from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class URLMapping:
    """A code-to-URL association as returned by every store binding.

    ``id``, ``created_at`` and ``updated_at`` are None until a store has
    persisted the mapping.
    """

    code: str
    original_url: str
    id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class MappingStore(ABC):
    """Durable code -> URL mappings.

    Implementations must enforce code uniqueness atomically on create and
    translate backend failures into the typed errors from
    ``src.shortener.core.exceptions``.
    """

    @abstractmethod
    def create(self, mapping: URLMapping) -> URLMapping:
        """
        Persist a new mapping.

        Args:
            mapping: Mapping carrying the code and original URL

        Returns:
            The stored mapping with identifier and timestamps assigned

        Raises:
            DuplicateCodeError: If the code is already taken
            StoreUnavailableError: If the backend cannot be reached
        """

    @abstractmethod
    def get_by_code(self, code: str) -> URLMapping:
        """Raises NotFoundError when no mapping has this code."""

    @abstractmethod
    def get_by_identifier(self, identifier: str) -> URLMapping:
        """Raises NotFoundError when no mapping has this identifier."""

    @abstractmethod
    def delete(self, identifier: str) -> None:
        """Hard-delete a mapping. Raises NotFoundError when nothing was removed."""

    @abstractmethod
    def ping(self) -> None:
        """Raises StoreUnavailableError when the backend is unreachable."""

    def close(self) -> None:
        """Release backend resources held by the store."""
