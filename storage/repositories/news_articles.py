"""
News Article Repository.

============================================================
PURPOSE
============================================================
Data access for the news_articles table.

- Replace the stored batch (delete all + insert) in the
  caller's transaction
- Serve the latest active articles to the API
- Remove sample/static rows by source URL prefix

============================================================
TRANSACTIONS
============================================================
Methods never commit. The caller owns the transaction, so a
replace_all inside transaction_scope() is atomic: readers see
either the previous batch or the new one, never a mix.

============================================================
"""

from typing import List, Optional, Sequence

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from news_ingestion.types import Article
from storage.models.news import NewsArticle
from storage.repositories.base import BaseRepository


class NewsArticleRepository(BaseRepository[NewsArticle]):
    """Repository for stored news articles."""

    def __init__(self, session: Session) -> None:
        super().__init__(session, NewsArticle, "NewsArticleRepository")

    # =========================================================
    # WRITE
    # =========================================================

    def replace_all(self, articles: Sequence[Article]) -> int:
        """
        Replace every stored row with ``articles``.

        Args:
            articles: Ordered batch to store

        Returns:
            Number of rows inserted

        Raises:
            RepositoryException: On any database error; the caller rolls back
        """
        try:
            deleted = self._session.execute(delete(NewsArticle)).rowcount
            self._session.add_all([NewsArticle(**article.to_row()) for article in articles])
            self._session.flush()
        except SQLAlchemyError as e:
            self._handle_db_error(e, "replace_all", {"batch_size": len(articles)})

        self._logger.info(f"Replaced {deleted} stored articles with {len(articles)} new articles")
        return len(articles)

    def delete_by_source_prefix(self, prefix: str) -> int:
        """
        Delete rows whose source URL starts with ``prefix``.

        Returns:
            Number of rows deleted
        """
        try:
            result = self._session.execute(
                delete(NewsArticle).where(
                    NewsArticle.source_url.startswith(prefix, autoescape=True)
                )
            )
        except SQLAlchemyError as e:
            self._handle_db_error(e, "delete_by_source_prefix", {"prefix": prefix})

        self._logger.info(f"Deleted {result.rowcount} articles with source prefix {prefix}")
        return result.rowcount

    # =========================================================
    # READ
    # =========================================================

    def list_latest(self, limit: int, exclude_prefix: Optional[str] = None) -> List[NewsArticle]:
        """
        Most recent active articles, newest first.

        Args:
            limit: Maximum rows returned
            exclude_prefix: Source URL prefix to leave out (sample data)
        """
        stmt = select(NewsArticle).where(NewsArticle.is_active.is_(True))
        if exclude_prefix:
            stmt = stmt.where(
                ~NewsArticle.source_url.startswith(exclude_prefix, autoescape=True)
            )
        stmt = stmt.order_by(NewsArticle.published_at.desc(), NewsArticle.id.asc()).limit(limit)
        return self._execute_query(stmt)

    def get_by_id(self, article_id: int) -> Optional[NewsArticle]:
        return self._get_by_id(article_id)

    def get_by_id_or_raise(self, article_id: int) -> NewsArticle:
        return self._get_by_id_or_raise(article_id)

    def count(self) -> int:
        return self._count()

    def count_active(self) -> int:
        return self._count(NewsArticle.is_active.is_(True))
