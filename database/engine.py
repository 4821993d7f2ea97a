"""
Database Persistence Layer - Core Engine.

============================================================
RESPONSIBILITY
============================================================
Owns the SQLAlchemy engine and session factory for the process.

- Builds the engine from DATABASE_URL (SQLite by default)
- Hands out sessions and explicit transaction scopes
- Creates the schema at startup
- Hard failures on persistence errors

============================================================
"""

import logging
import os
from contextlib import contextmanager
from pathlib import Path
from typing import Generator, Optional

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from core.config import DEFAULT_DATABASE_URL
from storage.models import Base
from storage.repositories.exceptions import RepositoryException, TransactionError


logger = logging.getLogger(__name__)


# =============================================================
# DATABASE ENGINE
# =============================================================

_engine: Optional[Engine] = None
_SessionFactory: Optional[sessionmaker] = None


def get_database_url() -> str:
    """Get database URL from the environment."""
    url = os.getenv("DATABASE_URL")
    if not url:
        url = DEFAULT_DATABASE_URL
        logger.info(f"DATABASE_URL not set, using default: {url}")
    return url


def _redact(database_url: str) -> str:
    return make_url(database_url).render_as_string(hide_password=True)


def create_database_engine(database_url: Optional[str] = None, echo: bool = False) -> Engine:
    """
    Create a SQLAlchemy engine.

    SQLite engines allow use from worker threads; in-memory SQLite
    shares one connection so every session sees the same database.
    File-backed SQLite gets its parent directory created.

    Args:
        database_url: SQLAlchemy URL; DATABASE_URL or the default otherwise
        echo: Log SQL statements
    """
    database_url = database_url or get_database_url()
    url = make_url(database_url)

    logger.info(f"Creating database engine for: {_redact(database_url)}")

    if url.get_backend_name() != "sqlite":
        return create_engine(
            database_url,
            pool_size=5,
            max_overflow=10,
            pool_timeout=30,
            pool_recycle=1800,
            pool_pre_ping=True,
            echo=echo,
        )

    kwargs = {"connect_args": {"check_same_thread": False}, "echo": echo}
    if url.database in (None, "", ":memory:"):
        kwargs["poolclass"] = StaticPool
    else:
        Path(url.database).parent.mkdir(parents=True, exist_ok=True)

    engine = create_engine(database_url, **kwargs)

    @event.listens_for(engine, "connect")
    def on_connect(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA busy_timeout = 5000")
        cursor.close()
        logger.debug("SQLite connection established")

    return engine


def configure_database(database_url: Optional[str] = None, echo: bool = False) -> Engine:
    """
    (Re)bind the process-wide engine and session factory.

    Returns:
        The new engine
    """
    global _engine, _SessionFactory

    reset_engine()
    _engine = create_database_engine(database_url, echo=echo)
    _SessionFactory = sessionmaker(
        bind=_engine,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )
    return _engine


def get_engine() -> Engine:
    """Get the database engine, creating if necessary."""
    if _engine is None:
        configure_database()
    return _engine


def get_session_factory() -> sessionmaker:
    """Get session factory, creating if necessary."""
    if _SessionFactory is None:
        configure_database()
    return _SessionFactory


def reset_engine() -> None:
    """Dispose the current engine and forget the session factory."""
    global _engine, _SessionFactory

    if _engine is not None:
        _engine.dispose()
    _engine = None
    _SessionFactory = None


# =============================================================
# SESSION MANAGEMENT
# =============================================================


def get_session() -> Session:
    """
    Get a new database session.

    IMPORTANT: Caller is responsible for committing/closing.
    Prefer transaction_scope() for writes.
    """
    return get_session_factory()()


@contextmanager
def transaction_scope(
    session_factory: Optional[sessionmaker] = None,
) -> Generator[Session, None, None]:
    """
    Context manager for explicit transaction boundaries.

    Commits only if no exception occurs. Rolls back on ANY exception.
    Repository exceptions propagate unchanged; a failed commit raises
    TransactionError; other database failures inside the block are
    raised as DatabasePersistenceError.

    Usage:
        with transaction_scope() as session:
            NewsArticleRepository(session).replace_all(batch)
    """
    factory = session_factory or get_session_factory()
    session = factory()
    try:
        try:
            yield session
        except RepositoryException:
            logger.error("Repository operation failed, rolling back")
            session.rollback()
            raise
        except SQLAlchemyError as e:
            logger.error(f"Database transaction failed, rolling back: {e}")
            session.rollback()
            raise DatabasePersistenceError(f"Transaction failed: {e}") from e
        except Exception:
            logger.error("Transaction aborted by unexpected error, rolling back")
            session.rollback()
            raise

        try:
            session.commit()
        except SQLAlchemyError as e:
            logger.error(f"Commit failed, rolling back: {e}")
            session.rollback()
            raise TransactionError(
                repository_name="transaction_scope",
                operation="commit",
                phase="commit",
                original_error=str(e),
            ) from e
        logger.debug("Database transaction committed successfully")
    finally:
        session.close()


# =============================================================
# DATABASE INITIALIZATION
# =============================================================


def verify_database_connection() -> bool:
    """
    Verify the database connection is working.

    Raises:
        DatabaseConnectionError: If the connection fails
    """
    try:
        with get_engine().connect() as conn:
            conn.execute(text("SELECT 1")).fetchone()
            logger.info("Database connection verified successfully")
            return True
    except OperationalError as e:
        logger.error(f"Database connection failed: {e}")
        raise DatabaseConnectionError(f"Cannot connect to database: {e}") from e


def create_all_tables() -> None:
    """
    Create all tables defined in ORM models.

    Raises:
        DatabaseInitializationError: If table creation fails
    """
    try:
        logger.info("Creating database tables...")
        Base.metadata.create_all(bind=get_engine())
        logger.info("Database tables created successfully")
    except SQLAlchemyError as e:
        logger.error(f"Failed to create database tables: {e}")
        raise DatabaseInitializationError(f"Table creation failed: {e}") from e


def initialize_database() -> None:
    """
    Full database initialization sequence.

    1. Verify connection
    2. Create tables if they do not exist
    """
    try:
        verify_database_connection()
        create_all_tables()
    except DatabasePersistenceError as e:
        logger.critical(f"DATABASE INITIALIZATION FAILED: {e}")
        raise


# =============================================================
# CUSTOM EXCEPTIONS
# =============================================================

class DatabasePersistenceError(Exception):
    """Raised when database persistence fails."""
    pass


class DatabaseConnectionError(DatabasePersistenceError):
    """Raised when database connection fails."""
    pass


class DatabaseInitializationError(DatabasePersistenceError):
    """Raised when database initialization fails."""
    pass


__all__ = [
    "DEFAULT_DATABASE_URL",
    "configure_database",
    "create_all_tables",
    "create_database_engine",
    "get_database_url",
    "get_engine",
    "get_session",
    "get_session_factory",
    "initialize_database",
    "reset_engine",
    "transaction_scope",
    "verify_database_connection",
    "DatabaseConnectionError",
    "DatabaseInitializationError",
    "DatabasePersistenceError",
]
