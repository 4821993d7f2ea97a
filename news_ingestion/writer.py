"""
News Ingestion - Writer.

============================================================
RESPONSIBILITY
============================================================
Replaces the stored article set with one batch.

- Delete-all + insert run in ONE transaction
- Readers see the previous batch until commit
- Any failure rolls back and raises StorageError
- Runs on a worker thread so the event loop is not blocked

============================================================
"""

import asyncio
import logging
from typing import Optional, Sequence

from sqlalchemy.orm import sessionmaker

from database.engine import DatabasePersistenceError, transaction_scope
from news_ingestion.types import Article, StorageError
from storage.repositories import NewsArticleRepository, RepositoryException


class NewsWriter:
    """
    Persists article batches with replace-all semantics.

    No internal retry: a failed write is reported to the caller
    and the table keeps its pre-run contents.
    """

    def __init__(self, session_factory: Optional[sessionmaker] = None) -> None:
        """
        Initialize the writer.

        Args:
            session_factory: Session factory; the process-wide one otherwise
        """
        self._session_factory = session_factory
        self._logger = logging.getLogger("news_writer")

    def write_sync(self, articles: Sequence[Article]) -> int:
        """
        Replace the stored set with ``articles``.

        Returns:
            Number of rows written

        Raises:
            StorageError: If the transaction fails
        """
        try:
            with transaction_scope(self._session_factory) as session:
                count = NewsArticleRepository(session).replace_all(articles)
        except (RepositoryException, DatabasePersistenceError) as e:
            self._logger.error(f"Replace-all failed, stored articles unchanged: {e}")
            raise StorageError(
                message=f"Failed to replace stored articles: {e}",
                source="news_articles",
                recoverable=True,
            ) from e

        self._logger.info(f"Stored {count} articles")
        return count

    async def write(self, articles: Sequence[Article]) -> int:
        """Async wrapper around write_sync()."""
        return await asyncio.to_thread(self.write_sync, list(articles))
