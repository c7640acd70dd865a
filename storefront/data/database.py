"""
Database connection and session management.
Uses SQLAlchemy for direct Postgres connections (DATABASE_URL).
"""

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import NullPool, StaticPool

from storefront.utils.logger import get_logger

logger = get_logger("data.database")

# Base class for all our database models
Base = declarative_base()


def make_engine(database_url: str) -> Engine:
    """
    Engine for the given URL.

    SQLite in-memory URLs share one connection so every session sees the
    same database. Postgres uses NullPool, the Supabase pooler manages
    connections itself.
    """
    if database_url.startswith("sqlite"):
        return create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_engine(database_url, pool_pre_ping=True, poolclass=NullPool)


def make_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)


def create_schema(engine: Engine) -> None:
    """Create the storefront tables (local development and tests)."""
    # Import models so they register on Base.metadata
    from storefront.data import models  # noqa: F401
    Base.metadata.create_all(bind=engine)
    logger.info("Storefront tables created")
