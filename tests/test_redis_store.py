"""Unit tests for RedisMappingStore against a mocked redis client."""

from datetime import datetime, UTC
import json
import uuid

import pytest
import redis

from src.shortener.core.exceptions import DuplicateCodeError, NotFoundError, StoreUnavailableError
from src.shortener.stores.base import URLMapping
from src.shortener.stores.redis_store import (
    CREATE_SCRIPT,
    DELETE_SCRIPT,
    RedisMappingStore,
    serialize_mapping,
)

IDENTIFIER = "550e8400-e29b-41d4-a716-446655440000"


def stored_mapping() -> URLMapping:
    now = datetime(2025, 1, 1, 12, 0, tzinfo=UTC)
    return URLMapping(
        id=IDENTIFIER,
        code="abc1234",
        original_url="https://example.com",
        created_at=now,
        updated_at=now,
    )


def test_registers_scripts(redis_client):
    RedisMappingStore(redis_client)
    redis_client.register_script.assert_any_call(CREATE_SCRIPT)
    redis_client.register_script.assert_any_call(DELETE_SCRIPT)
    assert redis_client.register_script.call_count == 2


def test_create_writes_both_keys_atomically(redis_client):
    store = RedisMappingStore(redis_client, prefix="test")
    mapping = store.create(URLMapping(code="abc1234", original_url="https://example.com"))

    assert uuid.UUID(mapping.id)
    assert mapping.created_at == mapping.updated_at

    script = redis_client.scripts[CREATE_SCRIPT]
    script.assert_called_once()
    keys = script.call_args.kwargs["keys"]
    args = script.call_args.kwargs["args"]
    assert keys == ["test:code:abc1234", f"test:id:{mapping.id}"]
    assert json.loads(args[0]) == serialize_mapping(mapping)
    assert args[1] == "abc1234"


def test_create_duplicate_code(redis_client):
    store = RedisMappingStore(redis_client)
    redis_client.scripts[CREATE_SCRIPT].return_value = 0

    with pytest.raises(DuplicateCodeError):
        store.create(URLMapping(code="abc1234", original_url="https://example.com"))


def test_get_by_code_round_trips_document(redis_client):
    redis_client.get.return_value = json.dumps(serialize_mapping(stored_mapping()))
    store = RedisMappingStore(redis_client)

    assert store.get_by_code("abc1234") == stored_mapping()
    redis_client.get.assert_called_once_with("url:code:abc1234")


def test_get_by_code_missing(redis_client):
    store = RedisMappingStore(redis_client)
    with pytest.raises(NotFoundError):
        store.get_by_code("missing")


def test_get_by_identifier_follows_code_pointer(redis_client):
    data = {
        f"url:id:{IDENTIFIER}": "abc1234",
        "url:code:abc1234": json.dumps(serialize_mapping(stored_mapping())),
    }
    redis_client.get.side_effect = data.get
    store = RedisMappingStore(redis_client)

    assert store.get_by_identifier(IDENTIFIER) == stored_mapping()


def test_get_by_identifier_missing(redis_client):
    store = RedisMappingStore(redis_client)
    with pytest.raises(NotFoundError):
        store.get_by_identifier(IDENTIFIER)


def test_delete_runs_as_one_script(redis_client):
    store = RedisMappingStore(redis_client, prefix="test")

    store.delete(IDENTIFIER)

    redis_client.scripts[DELETE_SCRIPT].assert_called_once_with(
        keys=[f"test:id:{IDENTIFIER}"], args=["test:code:"]
    )
    redis_client.get.assert_not_called()
    redis_client.delete.assert_not_called()


def test_delete_unknown_identifier(redis_client):
    store = RedisMappingStore(redis_client)
    redis_client.scripts[DELETE_SCRIPT].return_value = 0

    with pytest.raises(NotFoundError):
        store.delete(IDENTIFIER)


def test_delete_script_removes_pointer_and_document():
    assert "redis.call('GET', KEYS[1])" in DELETE_SCRIPT
    assert "redis.call('DEL', KEYS[1], ARGV[1] .. code)" in DELETE_SCRIPT


@pytest.mark.parametrize("error", [redis.exceptions.ConnectionError, redis.exceptions.TimeoutError])
def test_connection_errors_become_store_unavailable(redis_client, error):
    redis_client.get.side_effect = error("boom")
    redis_client.ping.side_effect = error("boom")
    store = RedisMappingStore(redis_client)
    redis_client.scripts[CREATE_SCRIPT].side_effect = error("boom")
    redis_client.scripts[DELETE_SCRIPT].side_effect = error("boom")

    with pytest.raises(StoreUnavailableError):
        store.get_by_code("abc1234")
    with pytest.raises(StoreUnavailableError):
        store.ping()
    with pytest.raises(StoreUnavailableError):
        store.create(URLMapping(code="abc1234", original_url="https://example.com"))
    with pytest.raises(StoreUnavailableError):
        store.delete(IDENTIFIER)
