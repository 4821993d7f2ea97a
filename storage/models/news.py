"""
News Article ORM Model.

============================================================
PURPOSE
============================================================
The news_articles table holds exactly one batch: the articles
written by the most recent successful refresh run (plus any
sample rows seeded outside the refresh path).

============================================================
DATA LIFECYCLE ROLE
============================================================
- Stage: SERVING
- Mutability: REPLACED WHOLESALE per refresh run
- Source: NewsWriter (replace-all in one transaction)
- Consumers: /api/news endpoints

============================================================
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, Index, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from news_ingestion.types import SOURCE_NAME_MAX_LENGTH, TITLE_MAX_LENGTH, URL_MAX_LENGTH
from storage.models.base import Base


class NewsArticle(Base):
    """
    One stored news article.

    Title and description are truncated upstream to 500 and 1000
    characters; URLs get a generous column width because feed links
    routinely carry tracking parameters.
    """

    __tablename__ = "news_articles"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    title: Mapped[str] = mapped_column(String(TITLE_MAX_LENGTH), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    content: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    image_url: Mapped[Optional[str]] = mapped_column(String(URL_MAX_LENGTH), nullable=True)
    source_url: Mapped[str] = mapped_column(String(URL_MAX_LENGTH), nullable=False)
    source_name: Mapped[str] = mapped_column(String(SOURCE_NAME_MAX_LENGTH), nullable=False)

    published_at: Mapped[datetime] = mapped_column(nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        nullable=False,
        server_default=func.now(),
        comment="Row insertion timestamp (UTC)",
    )

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    __table_args__ = (
        Index("ix_news_articles_published_at", "published_at"),
    )

    def __repr__(self) -> str:
        return f"<NewsArticle id={self.id} source={self.source_name!r} title={self.title[:40]!r}>"
