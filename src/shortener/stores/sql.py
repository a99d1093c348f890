from sqlalchemy import delete, select, text
from sqlalchemy.exc import IntegrityError, InterfaceError, OperationalError, TimeoutError as PoolTimeoutError
from sqlalchemy.orm import Session, sessionmaker
from contextlib import contextmanager
from typing import Iterator

from src.shortener.core.config import logger
from src.shortener.core.exceptions import DuplicateCodeError, NotFoundError, StoreUnavailableError
from src.shortener.models.url import URL
from src.shortener.stores.base import MappingStore, URLMapping

UNAVAILABLE_ERRORS = (OperationalError, InterfaceError, PoolTimeoutError)


def to_mapping(row: URL) -> URLMapping:
    return URLMapping(
        id=row.id,
        code=row.code,
        original_url=row.original_url,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


class SQLAlchemyMappingStore(MappingStore):
    """
    Relational store.

    Code uniqueness comes from the unique index on ``urls.code``: a colliding
    insert fails inside the database, never in a read-then-write from Python.
    """

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    @contextmanager
    def _session(self) -> Iterator[Session]:
        db = self.session_factory()
        try:
            yield db
        except UNAVAILABLE_ERRORS as e:
            db.rollback()
            logger.error(f"Database error: {e}")
            raise StoreUnavailableError("Database is unavailable") from e
        finally:
            db.close()

    def create(self, mapping: URLMapping) -> URLMapping:
        with self._session() as db:
            db_url = URL(code=mapping.code, original_url=mapping.original_url)
            db.add(db_url)
            try:
                db.commit()
            except IntegrityError as e:
                db.rollback()
                raise DuplicateCodeError(f"Code {mapping.code} already exists") from e
            db.refresh(db_url)
            return to_mapping(db_url)

    def get_by_code(self, code: str) -> URLMapping:
        with self._session() as db:
            db_url = db.scalars(select(URL).where(URL.code == code)).first()
            if db_url is None:
                raise NotFoundError(f"No URL with code {code}")
            return to_mapping(db_url)

    def get_by_identifier(self, identifier: str) -> URLMapping:
        with self._session() as db:
            db_url = db.get(URL, identifier)
            if db_url is None:
                raise NotFoundError(f"No URL with id {identifier}")
            return to_mapping(db_url)

    def delete(self, identifier: str) -> None:
        with self._session() as db:
            result = db.execute(delete(URL).where(URL.id == identifier))
            db.commit()
            if result.rowcount == 0:
                raise NotFoundError(f"No URL with id {identifier}")

    def ping(self) -> None:
        with self._session() as db:
            db.execute(text("SELECT 1"))

    def close(self) -> None:
        engine = self.session_factory.kw.get("bind")
        if engine is not None:
            engine.dispose()
