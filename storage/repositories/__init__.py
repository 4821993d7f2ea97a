"""
Storage Repositories Package.

Repositories wrap SQLAlchemy access behind domain operations and
translate database errors into RepositoryException subclasses.
"""

from storage.repositories.base import BaseRepository
from storage.repositories.exceptions import (
    ConnectionError,
    IntegrityError,
    QueryError,
    RecordNotFoundError,
    RepositoryException,
    TransactionError,
)
from storage.repositories.news_articles import NewsArticleRepository


__all__ = [
    "BaseRepository",
    "ConnectionError",
    "IntegrityError",
    "NewsArticleRepository",
    "QueryError",
    "RecordNotFoundError",
    "RepositoryException",
    "TransactionError",
]
