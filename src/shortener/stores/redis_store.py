"""Redis binding for the mapping store

Key layout (``prefix`` defaults to ``url``):

    <prefix>:code:<code>  -> JSON document of the mapping
    <prefix>:id:<id>      -> code

A mapping is created by a Lua script that writes the code key with NX and the
id key only if that succeeded, so two writers racing on the same code can
never both win. Deletion looks up the code and removes both keys inside one script as well.
"""

from dataclasses import replace
from datetime import datetime, UTC
from typing import TypeVar, Any
from collections.abc import Callable
import functools
import json

import redis

from src.shortener.core.config import logger
from src.shortener.core.exceptions import DuplicateCodeError, NotFoundError, StoreUnavailableError
from src.shortener.db.base import new_identifier
from src.shortener.stores.base import MappingStore, URLMapping

F = TypeVar("F", bound=Callable[..., Any])

CREATE_SCRIPT = """
if redis.call('SET', KEYS[1], ARGV[1], 'NX') then
    redis.call('SET', KEYS[2], ARGV[2])
    return 1
end
return 0
"""

DELETE_SCRIPT = """
local code = redis.call('GET', KEYS[1])
if not code then
    return 0
end
redis.call('DEL', KEYS[1], ARGV[1] .. code)
return 1
"""


def handle_redis_connection_error(method: F) -> F:
    """Translate redis connectivity failures into StoreUnavailableError."""

    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        try:
            return method(self, *args, **kwargs)
        except (redis.exceptions.ConnectionError, redis.exceptions.TimeoutError) as e:
            logger.error(f"Redis error: {e}")
            raise StoreUnavailableError("Redis is unavailable") from e

    return wrapper


def serialize_mapping(mapping: URLMapping) -> dict:
    return {
        "id": mapping.id,
        "code": mapping.code,
        "original_url": mapping.original_url,
        "created_at": mapping.created_at.isoformat() if mapping.created_at else None,
        "updated_at": mapping.updated_at.isoformat() if mapping.updated_at else None,
    }


def deserialize_mapping(data: dict) -> URLMapping:
    return URLMapping(
        id=data["id"],
        code=data["code"],
        original_url=data["original_url"],
        created_at=datetime.fromisoformat(data["created_at"]) if data["created_at"] else None,
        updated_at=datetime.fromisoformat(data["updated_at"]) if data["updated_at"] else None,
    )


class RedisMappingStore(MappingStore):
    """Key-value store on a ``redis.Redis`` client created with decode_responses=True."""

    def __init__(self, client: redis.Redis, prefix: str = "url"):
        self.redis = client
        self.prefix = prefix
        self._create_script = client.register_script(CREATE_SCRIPT)
        self._delete_script = client.register_script(DELETE_SCRIPT)

    @classmethod
    def from_url(cls, url: str, **kwargs) -> "RedisMappingStore":
        return cls(redis.Redis.from_url(url, decode_responses=True), **kwargs)

    def code_key(self, code: str) -> str:
        return f"{self.prefix}:code:{code}"

    def id_key(self, identifier: str) -> str:
        return f"{self.prefix}:id:{identifier}"

    @handle_redis_connection_error
    def create(self, mapping: URLMapping) -> URLMapping:
        now = datetime.now(UTC)
        stored = replace(mapping, id=new_identifier(), created_at=now, updated_at=now)

        created = self._create_script(
            keys=[self.code_key(stored.code), self.id_key(stored.id)],
            args=[json.dumps(serialize_mapping(stored)), stored.code],
        )
        if not created:
            raise DuplicateCodeError(f"Code {stored.code} already exists")
        return stored

    @handle_redis_connection_error
    def get_by_code(self, code: str) -> URLMapping:
        payload = self.redis.get(self.code_key(code))
        if payload is None:
            raise NotFoundError(f"No URL with code {code}")
        return deserialize_mapping(json.loads(payload))

    @handle_redis_connection_error
    def get_by_identifier(self, identifier: str) -> URLMapping:
        code = self.redis.get(self.id_key(identifier))
        if code is None:
            raise NotFoundError(f"No URL with id {identifier}")
        return self.get_by_code(code)

    @handle_redis_connection_error
    def delete(self, identifier: str) -> None:
        deleted = self._delete_script(
            keys=[self.id_key(identifier)], args=[self.code_key("")]
        )
        if not deleted:
            raise NotFoundError(f"No URL with id {identifier}")

    @handle_redis_connection_error
    def ping(self) -> None:
        self.redis.ping()

    def close(self) -> None:
        self.redis.close()
