"""Pytest configuration and fixtures."""

from unittest.mock import MagicMock

import pytest
import redis
from fastapi.testclient import TestClient

from src.shortener.core.config import Settings
from src.shortener.db.session import create_db_engine, create_session_factory, init_db
from src.shortener.main import create_app
from src.shortener.services.url_service import URLService
from src.shortener.stores.memory import InMemoryMappingStore
from src.shortener.stores.sql import SQLAlchemyMappingStore


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        STORE_BACKEND="memory",
        DATABASE_URL=f"sqlite:///{tmp_path / 'shortener.db'}",
        REQUEST_TIMEOUT=5.0,
    )


@pytest.fixture
def memory_store() -> InMemoryMappingStore:
    return InMemoryMappingStore()


@pytest.fixture
def service(memory_store) -> URLService:
    return URLService(memory_store)


@pytest.fixture
def sql_engine(settings):
    engine = create_db_engine(settings)
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def sql_store(sql_engine) -> SQLAlchemyMappingStore:
    return SQLAlchemyMappingStore(create_session_factory(sql_engine))


@pytest.fixture
def redis_client() -> MagicMock:
    """Mock redis client; registered scripts report success by default.

    Each registered script gets its own mock, reachable as ``client.scripts[source]``.
    """
    client = MagicMock(spec=redis.Redis)
    client.scripts = {}

    def register_script(source):
        return client.scripts.setdefault(source, MagicMock(return_value=1))

    client.register_script.side_effect = register_script
    client.get.return_value = None
    return client


@pytest.fixture
def client(settings, memory_store):
    app = create_app(settings, store=memory_store)
    with TestClient(app) as test_client:
        yield test_client
