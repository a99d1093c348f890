from sqlalchemy import create_engine, event, exc
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
import time

from src.shortener.core.config import Settings, logger
from src.shortener.db.base import Base

# Registers the urls table on Base.metadata.
from src.shortener.models import url as _url_model  # noqa: F401


def create_db_engine(settings: Settings) -> Engine:
    """
    Build the pooled engine shared by every request.

    The pool keeps DB_MIN_POOL_SIZE connections around, grows up to
    DB_MAX_POOL_SIZE, and blocks for at most DB_POOL_TIMEOUT seconds when
    exhausted. Connections older than DB_CONN_MAX_LIFETIME are recycled and
    connections idle longer than DB_CONN_MAX_IDLE_TIME are dropped on checkout.
    """
    connect_args = {}
    if settings.DATABASE_URL.startswith("sqlite"):
        connect_args["check_same_thread"] = False

    engine = create_engine(
        settings.DATABASE_URL,
        pool_size=settings.DB_MIN_POOL_SIZE,
        max_overflow=settings.DB_MAX_POOL_SIZE - settings.DB_MIN_POOL_SIZE,
        pool_timeout=settings.DB_POOL_TIMEOUT,
        pool_recycle=settings.DB_CONN_MAX_LIFETIME,
        pool_pre_ping=True,
        connect_args=connect_args,
    )
    _evict_idle_connections(engine, settings.DB_CONN_MAX_IDLE_TIME)

    logger.info(
        f"Database pool ready: min={settings.DB_MIN_POOL_SIZE} max={settings.DB_MAX_POOL_SIZE} "
        f"lifetime={settings.DB_CONN_MAX_LIFETIME}s idle={settings.DB_CONN_MAX_IDLE_TIME}s"
    )
    return engine


def _evict_idle_connections(engine: Engine, max_idle_time: float) -> None:
    @event.listens_for(engine, "checkin")
    def on_checkin(dbapi_connection, connection_record):
        connection_record.info["last_checkin"] = time.monotonic()

    @event.listens_for(engine, "checkout")
    def on_checkout(dbapi_connection, connection_record, connection_proxy):
        last_checkin = connection_record.info.pop("last_checkin", None)
        if last_checkin is not None and time.monotonic() - last_checkin > max_idle_time:
            # The pool discards the connection and retries with a fresh one.
            raise exc.DisconnectionError("connection exceeded idle timeout")


def create_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)


def init_db(engine: Engine) -> None:
    """Create the urls table and its code index when they do not exist yet."""
    Base.metadata.create_all(bind=engine)
    logger.info("Database schema initialised")
