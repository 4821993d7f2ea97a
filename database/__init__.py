"""
Database Package Initialization.

============================================================
DATABASE PERSISTENCE LAYER
============================================================

Engine, session and transaction management for the news
service. Writes go through explicit transaction scopes with
commit/rollback; every failure raises.

============================================================
"""

from .engine import (
    # Engine creation
    DEFAULT_DATABASE_URL,
    configure_database,
    create_database_engine,
    get_database_url,
    get_engine,
    reset_engine,

    # Session management
    get_session,
    get_session_factory,
    transaction_scope,

    # Database initialization
    create_all_tables,
    initialize_database,
    verify_database_connection,

    # Exceptions
    DatabaseConnectionError,
    DatabaseInitializationError,
    DatabasePersistenceError,
)


__all__ = [
    "DEFAULT_DATABASE_URL",
    "configure_database",
    "create_database_engine",
    "get_database_url",
    "get_engine",
    "reset_engine",
    "get_session",
    "get_session_factory",
    "transaction_scope",
    "create_all_tables",
    "initialize_database",
    "verify_database_connection",
    "DatabaseConnectionError",
    "DatabaseInitializationError",
    "DatabasePersistenceError",
]
