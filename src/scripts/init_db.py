"""
Create the URL shortener schema.

Creates the urls table with its unique code index in the database named by
DATABASE_URL. Safe to run repeatedly.

Usage:
    python -m src.scripts.init_db
"""

from src.shortener.core.config import configure_logging, get_settings
from src.shortener.db.session import create_db_engine, init_db


def run_init():
    """Create all tables and dispose of the engine."""
    settings = get_settings()
    configure_logging(settings)
    engine = create_db_engine(settings)
    try:
        init_db(engine)
    finally:
        engine.dispose()


if __name__ == "__main__":
    run_init()
