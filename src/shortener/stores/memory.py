from dataclasses import replace
from datetime import datetime, UTC
import threading

from src.shortener.core.exceptions import DuplicateCodeError, NotFoundError
from src.shortener.db.base import new_identifier
from src.shortener.stores.base import MappingStore, URLMapping


class InMemoryMappingStore(MappingStore):
    """Process-local store for tests and single-process local runs."""

    def __init__(self):
        self._lock = threading.Lock()
        self._by_id: dict[str, URLMapping] = {}
        self._id_by_code: dict[str, str] = {}

    def create(self, mapping: URLMapping) -> URLMapping:
        now = datetime.now(UTC)
        with self._lock:
            if mapping.code in self._id_by_code:
                raise DuplicateCodeError(f"Code {mapping.code} already exists")

            stored = replace(mapping, id=new_identifier(), created_at=now, updated_at=now)
            self._by_id[stored.id] = stored
            self._id_by_code[stored.code] = stored.id
        return stored

    def get_by_code(self, code: str) -> URLMapping:
        with self._lock:
            identifier = self._id_by_code.get(code)
            if identifier is None:
                raise NotFoundError(f"No URL with code {code}")
            return self._by_id[identifier]

    def get_by_identifier(self, identifier: str) -> URLMapping:
        with self._lock:
            mapping = self._by_id.get(identifier)
        if mapping is None:
            raise NotFoundError(f"No URL with id {identifier}")
        return mapping

    def delete(self, identifier: str) -> None:
        with self._lock:
            mapping = self._by_id.pop(identifier, None)
            if mapping is None:
                raise NotFoundError(f"No URL with id {identifier}")
            del self._id_by_code[mapping.code]

    def ping(self) -> None:
        return None

    def __len__(self) -> int:
        with self._lock:
            return len(self._by_id)
